# -*- coding: utf-8 -*-
"""
View controllers of the checklist dashboard.

Each controller gets the DemoStore it works on, so two stores (two tests, or
a reset) never share state.
"""
import logging
from datetime import date, datetime, timedelta
from enum import Enum

from demo_data import REMINDER_DAYS, TASK_TYPES, Event, Notification, OilChange, percent
from errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

EVENT_TYPES = {
    "cleaning": "General Cleaning",
    "meeting": "Staff Meeting",
    "inspection": "Inspection",
    "custom": "Custom Event",
}

SHIFT_END_REMINDER_HOUR = 15   # one hour before the common 16:00 shift end


class View(Enum):
    WORKER = "worker"
    MANAGER = "manager"
    OIL_TRACKER = "oil-tracker"
    EVENTS = "events"
    NOTIFICATIONS = "notifications"


# ────────────────────────── worker ──────────────────────────
class WorkerChecklist:
    def __init__(self, store, employee_id):
        if store.employee(employee_id) is None:
            raise NotFoundError(f"Unknown employee {employee_id}")
        self.store = store
        self.employee_id = employee_id

    @property
    def checklists(self):
        return [c for c in self.store.checklists if c.employee_id == self.employee_id]

    def progress(self):
        """Completed tasks over all tasks of this worker's checklists."""
        tasks = [t for c in self.checklists for t in c.tasks]
        return percent(sum(1 for t in tasks if t.completed), len(tasks))

    def update_task(self, checklist_id, task_id, value, now=None):
        """
        Record one task input.

        checkbox: value is truthy / falsy; number: any non-empty value
        completes it; text: non-blank completes it; photo: a file name (or
        upload) completes it, an empty value leaves it as it was.
        """
        now = now or datetime.now()
        cl = next((c for c in self.checklists if c.id == checklist_id), None)
        if cl is None:
            raise NotFoundError("Checklist not found")
        task = next((t for t in cl.tasks if t.id == task_id), None)
        if task is None:
            raise NotFoundError("Task not found")

        if task.type == "checkbox":
            task.completed = value not in (None, False, "", "0", "off", "false")
        elif task.type == "number":
            task.value = "" if value is None else str(value).strip()
            task.completed = task.value != ""
        elif task.type == "text":
            task.value = "" if value is None else str(value)
            task.completed = task.value.strip() != ""
        elif task.type == "photo":
            if not value:
                return cl
            task.completed = True
        else:
            raise ValidationError(f"Task type must be one of: {', '.join(TASK_TYPES)}")

        task.timestamp = now
        cl.last_updated = now
        cl.refresh()
        logger.info("%s updated %s/%s -> %s (%d%%)", self.employee_id, checklist_id,
                    task_id, cl.status, cl.progress)
        return cl


# ────────────────────────── manager ──────────────────────────
def status_label(checklist):
    if checklist.status == "complete":
        return "Complete"
    if checklist.progress > 0:
        return "In Progress"
    return "Not Started"


class ManagerOverview:
    def __init__(self, store):
        self.store = store

    def stats(self):
        cls = self.store.checklists
        total = len(cls)
        completed = sum(1 for c in cls if c.status == "complete")
        pending = sum(1 for c in cls if c.status == "pending")
        return {"total": total, "completed": completed, "pending": pending,
                "incomplete": total - completed - pending}

    def rows(self):
        return sorted(self.store.checklists, key=lambda c: (c.location_id, c.employee_name))

    def checklist(self, checklist_id):
        cl = next((c for c in self.store.checklists if c.id == checklist_id), None)
        if cl is None:
            raise NotFoundError("Checklist not found")
        return cl


# ────────────────────────── oil tracker ──────────────────────────
class OilTracker:
    def __init__(self, store, today=None, interval=7):
        self.store = store
        self.today = today or store.today
        self.interval = interval

    def last_change(self, location_id, fryer_id):
        history = [oc for oc in self.store.oil_changes
                   if oc.location_id == location_id and oc.fryer_id == fryer_id]
        return max(history, key=lambda oc: oc.date, default=None)

    def status(self, days_ago):
        if days_ago is None:
            return "No history"
        if days_ago > self.interval:
            return "Overdue"
        if days_ago >= self.interval - 1:
            return "Due Soon"
        return "Good"

    def fryers(self):
        """[(location, [fryer card dict, ...]), ...] in location order."""
        groups = []
        for loc in self.store.locations.values():
            cards = []
            for n in range(1, loc["fryers"] + 1):
                fryer_id = f"fryer-{n}"
                last = self.last_change(loc["id"], fryer_id)
                days_ago = (self.today - last.date).days if last else None
                cards.append({
                    "id": fryer_id,
                    "number": n,
                    "last_change": last,
                    "days_ago": days_ago,
                    "status": self.status(days_ago),
                })
            groups.append((loc, cards))
        return groups

    def next_scheduled(self):
        return min(self.store.oil_changes, key=lambda oc: oc.next_due, default=None)

    def assigned_worker(self, location_id):
        """First morning-shift worker at the location."""
        return next((e for e in self.store.employees
                     if e["location"] == location_id and e["shift"].startswith("08:00")), None)

    def record_change(self, location_id, fryer_id, employee_id, on=None):
        loc = self.store.locations.get(location_id)
        if loc is None:
            raise ValidationError("Unknown location")
        if fryer_id not in {f"fryer-{n}" for n in range(1, loc["fryers"] + 1)}:
            raise ValidationError("Unknown fryer")
        emp = self.store.employee(employee_id)
        if emp is None:
            raise ValidationError("Unknown employee")
        on = on or self.today
        oc = OilChange(
            id=self.store.new_id("oil"), location_id=location_id, fryer_id=fryer_id,
            date=on, employee_id=employee_id, employee_name=emp["name"],
            next_due=on + timedelta(days=self.interval),
        )
        self.store.oil_changes.append(oc)
        logger.info("oil change recorded: %s %s by %s", location_id, fryer_id, employee_id)
        return oc


# ────────────────────────── events ──────────────────────────
class EventScheduler:
    def __init__(self, store, today=None):
        self.store = store
        self.today = today or store.today

    def upcoming(self):
        return sorted(self.store.events, key=lambda e: (e.date, e.time))

    def days_until(self, event):
        return (event.date - self.today).days

    def create_event(self, data):
        title = (data.get("title") or "").strip()
        day = (data.get("date") or "").strip()
        at = (data.get("time") or "").strip()
        if not title or not day or not at:
            raise ValidationError("Please fill in all required fields")
        try:
            day = date.fromisoformat(day)
        except ValueError:
            raise ValidationError("Date must be YYYY-MM-DD") from None
        typ = data.get("type") or "custom"
        if typ not in EVENT_TYPES:
            raise ValidationError(f"Event type must be one of: {', '.join(EVENT_TYPES)}")
        location = data.get("location") or "all"
        if location != "all" and location not in self.store.locations:
            raise ValidationError("Unknown location")

        ev = Event(
            id=self.store.new_id("event"), type=typ, title=title, date=day, time=at,
            location=location, location_name=self.store.location_name(location),
            description=(data.get("description") or "").strip(),
            reminders=[day - timedelta(days=d) for d in REMINDER_DAYS],
        )
        self.store.events.append(ev)
        logger.info("event %s created for %s", ev.id, ev.date)
        return ev


# ────────────────────────── notifications ──────────────────────────
def relative_time(ts, now):
    mins = int((now - ts).total_seconds() // 60)
    if mins < 1:
        return "Just now"
    if mins < 60:
        return f"{mins} min ago"
    hours = mins // 60
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    days = hours // 24
    if days < 7:
        return f"{days} day{'s' if days > 1 else ''} ago"
    return f"{ts:%b} {ts.day}"


class NotificationCenter:
    def __init__(self, store):
        self.store = store

    def newest_first(self):
        return sorted(self.store.notifications, key=lambda n: n.timestamp, reverse=True)

    def unread_count(self):
        return sum(1 for n in self.store.notifications if not n.read)

    def mark_read(self, notification_id):
        n = next((n for n in self.store.notifications if n.id == notification_id), None)
        if n is None:
            raise NotFoundError("Notification not found")
        n.read = True
        return n

    def send(self, type, title, message, recipient, recipient_name, now=None):
        n = Notification(id=self.store.new_id("notif"), type=type, title=title,
                         message=message, recipient=recipient,
                         recipient_name=recipient_name, timestamp=now or datetime.now())
        self.store.notifications.insert(0, n)
        logger.info("notification %s sent to %s", n.id, recipient)
        return n

    def end_of_day_summary(self):
        parts = []
        for loc in self.store.locations.values():
            cls = [c for c in self.store.checklists if c.location_id == loc["id"]]
            done = sum(1 for c in cls if c.status == "complete")
            missing = ", ".join(f"{c.employee_name} - {c.title}"
                                for c in cls if c.status != "complete")
            line = f"{loc['name']}: {done}/{len(cls)} complete"
            if missing:
                line += f" (missing: {missing})"
            parts.append(line)
        return ". ".join(parts)

    def shift_end_reminders(self, now):
        """At 15:xx, one reminder per worker who still has an unfinished checklist."""
        if now.hour != SHIFT_END_REMINDER_HOUR:
            return []
        names = []
        for c in self.store.checklists:
            if c.status != "complete" and c.employee_name not in names:
                names.append(c.employee_name)
        return [self.send("shift-reminder", "Shift Ending Soon",
                          "You have 1 hour left in your shift. Please complete remaining checklists.",
                          "worker", name, now=now)
                for name in names]
