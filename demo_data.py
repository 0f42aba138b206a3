# -*- coding: utf-8 -*-
"""
In-memory dataset behind the checklist dashboard.

Nothing here is persisted. `DemoStore.generate` builds a fresh store for one
day; the app keeps one instance and the dashboard's reset button replaces it.
"""
from __future__ import annotations

import copy
import random
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

TASK_TYPES = ("checkbox", "number", "text", "photo")
DAILY_TEMPLATES = ("cleaning", "fridge-temps", "drink-count")

LOCATIONS = {
    "location-1": {"id": "location-1", "name": "Knez Mihailova", "type": "restaurant", "fryers": 4},
    "location-2": {"id": "location-2", "name": "Skadarlija", "type": "restaurant", "fryers": 3},
    "location-3": {"id": "location-3", "name": "Zemun", "type": "restaurant", "fryers": 3},
    "production": {"id": "production", "name": "Production Facility", "type": "production", "fryers": 2},
}

EMPLOYEES = [
    {"id": "emp-1", "name": "Marko Petrović", "role": "worker", "location": "location-1", "shift": "08:00-16:00"},
    {"id": "emp-2", "name": "Ana Jovanović", "role": "team-leader", "location": "location-1", "shift": "08:00-16:00"},
    {"id": "emp-3", "name": "Stefan Nikolić", "role": "worker", "location": "location-1", "shift": "16:00-00:00"},
    {"id": "emp-4", "name": "Jelena Đorđević", "role": "worker", "location": "location-2", "shift": "08:00-16:00"},
    {"id": "emp-5", "name": "Milan Stojanović", "role": "team-leader", "location": "location-2", "shift": "08:00-16:00"},
    {"id": "emp-6", "name": "Ivana Popović", "role": "worker", "location": "location-2", "shift": "16:00-00:00"},
    {"id": "emp-7", "name": "Nikola Ilić", "role": "worker", "location": "location-3", "shift": "08:00-16:00"},
    {"id": "emp-8", "name": "Maja Pavlović", "role": "team-leader", "location": "location-3", "shift": "08:00-16:00"},
    {"id": "emp-9", "name": "Aleksandar Stanković", "role": "worker", "location": "location-3", "shift": "16:00-00:00"},
    {"id": "emp-10", "name": "Teodora Milošević", "role": "worker", "location": "production", "shift": "06:00-14:00"},
]

CHECKLIST_TEMPLATES = {
    "oil-change": {
        "id": "oil-change", "title": "Oil Change", "frequency": "weekly",
        "tasks": [
            {"id": "task-1", "title": "Drain old oil completely", "type": "checkbox"},
            {"id": "task-2", "title": "Clean fryer basket and interior", "type": "checkbox"},
            {"id": "task-3", "title": "Add fresh oil (liters)", "type": "number", "unit": "L"},
            {"id": "task-4", "title": "Record oil temperature", "type": "number", "unit": "°C"},
            {"id": "task-5", "title": "Photo of clean fryer", "type": "photo"},
            {"id": "task-6", "title": "Notes or issues", "type": "text"},
        ],
    },
    "cleaning": {
        "id": "cleaning", "title": "Daily Cleaning", "frequency": "daily",
        "tasks": [
            {"id": "task-1", "title": "Sweep and mop floors", "type": "checkbox"},
            {"id": "task-2", "title": "Clean all surfaces", "type": "checkbox"},
            {"id": "task-3", "title": "Empty trash bins", "type": "checkbox"},
            {"id": "task-4", "title": "Clean restrooms", "type": "checkbox"},
            {"id": "task-5", "title": "Photo of cleaned area", "type": "photo"},
        ],
    },
    "fridge-temps": {
        "id": "fridge-temps", "title": "Fridge Temperature Check", "frequency": "daily",
        "tasks": [
            {"id": "task-1", "title": "Walk-in cooler temp (°C)", "type": "number", "unit": "°C"},
            {"id": "task-2", "title": "Prep fridge temp (°C)", "type": "number", "unit": "°C"},
            {"id": "task-3", "title": "Freezer temp (°C)", "type": "number", "unit": "°C"},
            {"id": "task-4", "title": "All temps within range (2-4°C)", "type": "checkbox"},
            {"id": "task-5", "title": "Issues or anomalies", "type": "text"},
        ],
    },
    "drink-count": {
        "id": "drink-count", "title": "Drink Inventory Count", "frequency": "daily",
        "tasks": [
            {"id": "task-1", "title": "Coca-Cola cans remaining", "type": "number", "unit": "cans"},
            {"id": "task-2", "title": "Water bottles remaining", "type": "number", "unit": "bottles"},
            {"id": "task-3", "title": "Juice boxes remaining", "type": "number", "unit": "boxes"},
            {"id": "task-4", "title": "Restock needed?", "type": "checkbox"},
            {"id": "task-5", "title": "Notes", "type": "text"},
        ],
    },
}

# (location, fryer, employee, days before today)
_OIL_HISTORY = [
    ("location-1", "fryer-1", "emp-1", 8),
    ("location-1", "fryer-2", "emp-3", 6),
    ("location-2", "fryer-1", "emp-4", 9),
    ("location-3", "fryer-1", "emp-7", 2),
]

# (type, title, days ahead, time, location, description)
_EVENTS = [
    ("cleaning", "Deep Kitchen Cleaning", 10, "08:00", "location-1",
     "Complete deep clean of kitchen area including walls, ceiling, and equipment"),
    ("meeting", "Monthly Staff Meeting", 16, "10:00", "all",
     "Review performance metrics and discuss upcoming promotions"),
    ("inspection", "Health & Safety Inspection", 21, "14:00", "location-2",
     "Annual health inspection by city authorities"),
]

REMINDER_DAYS = (7, 3, 1)


def percent(done, total):
    """Whole percent, half rounded up; 0 when there is nothing to do."""
    if not total:
        return 0
    return int((Decimal(done * 100) / Decimal(total)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


# ────────────────────────── records ──────────────────────────
@dataclass
class Task:
    id: str
    title: str
    type: str
    unit: Optional[str] = None
    completed: bool = False
    value: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass
class Checklist:
    id: str
    employee_id: str
    employee_name: str
    location_id: str
    location_name: str
    template_id: str
    title: str
    date: date
    tasks: List[Task]
    last_updated: datetime
    status: str = "pending"      # pending | complete
    progress: int = 0

    @property
    def completed_count(self):
        return sum(1 for t in self.tasks if t.completed)

    def refresh(self):
        """Derive status and progress from the tasks."""
        done = self.completed_count
        self.progress = percent(done, len(self.tasks))
        self.status = "complete" if self.tasks and done == len(self.tasks) else "pending"


@dataclass
class OilChange:
    id: str
    location_id: str
    fryer_id: str
    date: date
    employee_id: str
    employee_name: str
    next_due: date


@dataclass
class Event:
    id: str
    type: str
    title: str
    date: date
    time: str
    location: str
    location_name: str
    description: str
    reminders: List[date]


@dataclass
class Notification:
    id: str
    type: str
    title: str
    message: str
    recipient: str
    recipient_name: str
    timestamp: datetime
    read: bool = False


# ────────────────────────── store ──────────────────────────
@dataclass
class DemoStore:
    today: date
    locations: Dict[str, dict] = field(default_factory=lambda: copy.deepcopy(LOCATIONS))
    employees: List[dict] = field(default_factory=lambda: copy.deepcopy(EMPLOYEES))
    templates: Dict[str, dict] = field(default_factory=lambda: copy.deepcopy(CHECKLIST_TEMPLATES))
    checklists: List[Checklist] = field(default_factory=list)
    oil_changes: List[OilChange] = field(default_factory=list)
    events: List[Event] = field(default_factory=list)
    notifications: List[Notification] = field(default_factory=list)
    # one counter for every generated id, seeded records included
    _next_id: int = 0

    def new_id(self, prefix):
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    def employee(self, employee_id):
        return next((e for e in self.employees if e["id"] == employee_id), None)

    def location_name(self, location_id):
        if location_id == "all":
            return "All Locations"
        return self.locations[location_id]["name"]

    @classmethod
    def generate(cls, today: date, rng: random.Random, now: Optional[datetime] = None):
        """
        Fresh dataset for `today`.

        Deterministic for a seeded rng: task completion and values are drawn
        from it, and each checklist's status / progress follow from its tasks.
        """
        now = now or datetime.combine(today, time(12, 0))
        store = cls(today=today)

        for emp in store.employees:
            loc = store.locations[emp["location"]]
            for template_id in DAILY_TEMPLATES:
                tpl = store.templates[template_id]
                tasks = []
                for t in tpl["tasks"]:
                    done = rng.random() > 0.4
                    value = None
                    if t["type"] == "number" and done:
                        value = str(rng.randrange(50))
                    elif t["type"] == "text" and done:
                        value = "All good"
                    tasks.append(Task(
                        id=t["id"], title=t["title"], type=t["type"], unit=t.get("unit"),
                        completed=done, value=value,
                        timestamp=now - timedelta(seconds=rng.randrange(3600)) if done else None,
                    ))
                cl = Checklist(
                    id=f"checklist-{emp['id']}-{template_id}",
                    employee_id=emp["id"], employee_name=emp["name"],
                    location_id=loc["id"], location_name=loc["name"],
                    template_id=template_id, title=tpl["title"], date=today,
                    tasks=tasks,
                    last_updated=now - timedelta(seconds=rng.randrange(3600)),
                )
                cl.refresh()
                store.checklists.append(cl)

        for loc_id, fryer_id, emp_id, days_ago in _OIL_HISTORY:
            changed = today - timedelta(days=days_ago)
            store.oil_changes.append(OilChange(
                id=store.new_id("oil"), location_id=loc_id, fryer_id=fryer_id, date=changed,
                employee_id=emp_id, employee_name=store.employee(emp_id)["name"],
                next_due=changed + timedelta(days=7),
            ))

        for typ, title, ahead, at, loc_id, desc in _EVENTS:
            day = today + timedelta(days=ahead)
            store.events.append(Event(
                id=store.new_id("event"), type=typ, title=title, date=day, time=at,
                location=loc_id, location_name=store.location_name(loc_id),
                description=desc,
                reminders=[day - timedelta(days=d) for d in REMINDER_DAYS],
            ))

        first = store.events[0]
        store.notifications = [
            Notification(store.new_id("notif"), "shift-reminder", "Shift Ending Soon",
                         "You have 1 hour left in your shift. Please complete remaining checklists.",
                         "emp-1", "Marko Petrović", now - timedelta(minutes=30)),
            Notification(store.new_id("notif"), "oil-change", "Oil Change Due Tomorrow",
                         "You are scheduled for oil change at Knez Mihailova, Fryer 1 tomorrow at 08:00.",
                         "emp-1", "Marko Petrović", now - timedelta(days=1), read=True),
            Notification(store.new_id("notif"), "event-reminder", "Event in 7 Days",
                         f"{first.title} scheduled for {first.date:%b %d} at {first.location_name}.",
                         "all-location-1", "All Staff - Knez Mihailova", now - timedelta(days=2), read=True),
            Notification(store.new_id("notif"), "daily-summary", "End of Day Summary",
                         "Yesterday's checklists were completed at all locations.",
                         "manager", "General Manager", now - timedelta(hours=12)),
        ]
        return store
