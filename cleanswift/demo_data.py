"""Sample records loaded into the in-memory backend."""
from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from cleanswift.models import (
    Appointment,
    Child,
    Client,
    Contact,
    InventoryItem,
    Invoice,
    InvoiceItem,
    Location,
    Pet,
    Status,
)


def _relative(today: date, days: int) -> str:
    return (today + timedelta(days=days)).isoformat()


def demo_clients() -> List[Client]:
    return [
        Client(
            id="1",
            name="Johnson Family",
            contacts=[
                Contact("c1", "Alice Johnson", "Self", "555-0101", "alice@example.com", True),
                Contact("c2", "Mark Johnson", "Spouse", "555-0102", "mark@example.com", False),
            ],
            locations=[Location("l1", "123 Maple St, Springfield", "Home", "Gate code: 1234", True)],
            children=[Child("ch1", "Timmy", "5", "Likes superheroes")],
            pets=[Pet("p1", "Max", "Dog", "Friendly Golden Retriever")],
            house_notes="Key is under the mat. Alarm code 9999.",
            general_notes="Prefer text messages for scheduling.",
        ),
        Client(
            id="2",
            name="Bob Smith",
            contacts=[Contact("c3", "Bob Smith", "Self", "555-0202", "bob@example.com", True)],
            locations=[
                Location("l2", "456 Oak Ave, Springfield", "Home", "", True),
                Location("l3", "789 Pine Ln, Springfield", "Office", "Clean on weekends only", False),
            ],
        ),
    ]


def demo_appointments(today: Optional[date] = None) -> List[Appointment]:
    today = today or date.today()
    return [
        Appointment(
            id="1",
            client_id="1",
            client_name="Johnson Family",
            date=_relative(today, 0),
            time="09:00",
            service_type="Deep Clean",
            status=Status.PENDING,
            address="123 Maple St, Springfield",
            rate=50,
            estimated_hours=4,
            notes="Focus on the kitchen cabinets.",
        ),
        Appointment(
            id="2",
            client_id="2",
            client_name="Bob Smith",
            date=_relative(today, 1),
            time="13:00",
            service_type="Standard Clean",
            status=Status.PENDING,
            address="456 Oak Ave, Springfield",
            rate=45,
            estimated_hours=2.5,
        ),
        Appointment(
            id="3",
            client_id="1",
            client_name="Johnson Family",
            date=_relative(today, -2),
            time="09:00",
            service_type="Standard Clean",
            status=Status.COMPLETED,
            address="123 Maple St, Springfield",
            rate=45,
            estimated_hours=3,
            notes="Regular bi-weekly clean.",
        ),
    ]


def demo_invoices(today: Optional[date] = None) -> List[Invoice]:
    today = today or date.today()
    return [
        Invoice(
            id="1",
            client_id="1",
            appointment_id="3",
            client_name="Johnson Family",
            date=_relative(today, -2),
            due_date=_relative(today, 28),
            status=Status.PAID,
            amount=135.0,
            notes="Thank you for your business!",
            items=[InvoiceItem("i1", "Standard Clean (3 hrs)", 3, 45.0)],
        )
    ]


def demo_inventory() -> List[InventoryItem]:
    return [
        InventoryItem(
            id="1",
            item_name="All-Purpose Cleaner",
            quantity=5,
            unit="bottles",
            min_threshold=2,
            status=Status.IN_STOCK,
            supplier="CleanSupply Co.",
            cost=5.99,
            notes="Use mostly for kitchen surfaces.",
        ),
        InventoryItem(
            id="2",
            item_name="Microfiber Cloths",
            quantity=20,
            unit="pieces",
            min_threshold=10,
            status=Status.IN_STOCK,
            supplier="Amazon",
            cost=0.5,
            notes="Washable and reusable.",
        ),
    ]


__all__ = ["demo_appointments", "demo_clients", "demo_inventory", "demo_invoices"]
