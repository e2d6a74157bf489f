#!/usr/bin/env python3
"""Database seeding script for Call Mate.

Generates realistic demo data for development.
Run with: python scripts/seed_data.py

Usage:
    python scripts/seed_data.py              # Seed all data
    python scripts/seed_data.py --customers  # Seed only customers
    python scripts/seed_data.py --calls      # Seed only call logs
    python scripts/seed_data.py --clear      # Clear all data first
"""
from __future__ import annotations

import argparse
import asyncio
import os
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# Set database URL if not set
if "CALLMATE_DATABASE__URL" not in os.environ:
    os.environ["CALLMATE_DATABASE__URL"] = "sqlite+aiosqlite:///./callmate.db"

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.billing.numbering import job_numbers
from callmate.db.models import (
    CallDirection,
    CallLogModel,
    CallOutcome,
    CampaignModel,
    CustomerModel,
    InvoiceItemModel,
    InvoiceModel,
    JobModel,
    JobStatus,
    QuoteItemModel,
    QuoteModel,
)
from callmate.db.repositories import AiAgentSettingsRepository
from callmate.db.session import close_db, get_db_context, init_db
from callmate.services.documents import InvoiceService, QuoteService


# ============================================================================
# Sample Data
# ============================================================================

FIRST_NAMES = [
    "Dana", "Lee", "Morgan", "Alex", "Jordan", "Casey", "Riley", "Taylor",
    "Jamie", "Avery", "Quinn", "Rowan", "Sam", "Charlie", "Parker", "Reese",
]

LAST_NAMES = [
    "Reyes", "Park", "Nguyen", "Johnson", "Garcia", "Smith", "Patel", "Kim",
    "Brown", "Lopez", "Davis", "Martinez", "Wilson", "Clark", "Lewis",
]

CITIES = [
    ("Austin", "TX", "78701"),
    ("Round Rock", "TX", "78664"),
    ("Cedar Park", "TX", "78613"),
    ("Pflugerville", "TX", "78660"),
    ("Georgetown", "TX", "78626"),
]

STREETS = ["Congress Ave", "Lamar Blvd", "Guadalupe St", "Burnet Rd", "Oltorf St"]

SERVICES = [
    ("AC tune-up", "129.00"),
    ("Furnace inspection", "99.00"),
    ("Water heater flush", "149.00"),
    ("Panel upgrade", "1850.00"),
    ("Thermostat install", "210.00"),
    ("Drain cleaning", "175.00"),
    ("Labor (hour)", "95.00"),
    ("Diagnostic visit", "89.00"),
]

TRANSCRIPTS = [
    "Hi, my AC is blowing warm air. Can someone come out this week?",
    "I'd like a quote for replacing my water heater.",
    "Just checking what your hours are on Saturday.",
    "The breaker keeps tripping in the kitchen, can you call me back?",
]


def random_phone() -> str:
    """Generate a random US phone number."""
    return f"+1512555{random.randint(0, 9999):04d}"


def random_items(max_items: int = 3) -> list[dict]:
    return [
        {"description": name, "quantity": random.randint(1, 3), "rate": rate}
        for name, rate in random.sample(SERVICES, random.randint(1, max_items))
    ]


def random_slot(day: datetime) -> tuple[datetime, str, str]:
    """Scheduled datetime plus HH:MM start/end inside business hours."""
    hour = random.randint(8, 15)
    start = day.replace(hour=hour, minute=0, second=0, microsecond=0)
    return start, f"{hour:02d}:00", f"{hour + 2:02d}:00"


async def create_customers(session: AsyncSession, count: int = 40) -> list[CustomerModel]:
    """Create sample customers."""
    print(f"Creating {count} customers...")
    customers = []

    for _ in range(count):
        first = random.choice(FIRST_NAMES)
        last = random.choice(LAST_NAMES)
        city, state, zip_code = random.choice(CITIES)

        customer = CustomerModel(
            first_name=first,
            last_name=last,
            email=f"{first.lower()}.{last.lower()}@example.com" if random.random() > 0.2 else None,
            phone=random_phone(),
            address=f"{random.randint(100, 9999)} {random.choice(STREETS)}",
            city=city,
            state=state,
            zip_code=zip_code,
        )
        session.add(customer)
        customers.append(customer)

    await session.flush()
    print(f"✓ Created {count} customers")
    return customers


async def create_jobs(
    session: AsyncSession,
    customers: list[CustomerModel],
    days_back: int = 14,
    days_forward: int = 14,
) -> list[JobModel]:
    """Create jobs around today; past ones are mostly completed."""
    print("Creating jobs...")
    jobs = []
    now = datetime.now(timezone.utc)

    for offset in range(-days_back, days_forward + 1):
        day = now + timedelta(days=offset)
        if day.weekday() >= 5:
            continue

        for _ in range(random.randint(1, 4)):
            scheduled, start, end = random_slot(day)
            if offset < 0:
                status = random.choices(
                    [JobStatus.COMPLETED, JobStatus.CANCELLED], weights=[90, 10]
                )[0]
            elif offset == 0:
                status = random.choice([JobStatus.SCHEDULED, JobStatus.IN_PROGRESS])
            else:
                status = JobStatus.SCHEDULED

            name, rate = random.choice(SERVICES)
            job = JobModel(
                job_number=job_numbers.next(),
                title=name,
                customer_id=random.choice(customers).id,
                status=status.value,
                scheduled_date=scheduled,
                start_time=start,
                end_time=end,
                estimated_duration=120,
                total_amount=Decimal(rate),
            )
            session.add(job)
            jobs.append(job)

    await session.flush()
    print(f"✓ Created {len(jobs)} jobs")
    return jobs


async def create_quotes(session: AsyncSession, customers: list[CustomerModel], count: int = 20) -> None:
    """Create quotes in every lifecycle stage and invoice the accepted ones."""
    print(f"Creating {count} quotes...")
    quotes = QuoteService(session)
    invoices = InvoiceService(session)
    invoiced = 0

    for _ in range(count):
        customer = random.choice(customers)
        quote = await quotes.create({
            "title": f"Estimate for {customer.full_name}",
            "customer_id": customer.id,
            "items": random_items(),
        })

        stage = random.choice(["draft", "sent", "accepted", "declined"])
        if stage == "draft":
            continue
        await quotes.send(quote.id)
        if stage == "declined":
            await quotes.decline(quote.id)
        elif stage == "accepted":
            await quotes.accept(quote.id)
            invoice = await invoices.create_from_quote(quote.id)
            invoiced += 1
            if random.random() > 0.3:
                await invoices.send(invoice.id)
                await invoices.mark_paid(invoice.id)

    print(f"✓ Created {count} quotes and {invoiced} invoices")


async def create_call_logs(
    session: AsyncSession,
    customers: list[CustomerModel],
    days: int = 14,
    calls_per_day: int = 6,
) -> list[CallLogModel]:
    """Create call logs for the last ``days`` days."""
    print(f"Creating ~{days * calls_per_day} call logs...")
    calls = []
    now = datetime.now(timezone.utc)

    for offset in range(days):
        for _ in range(random.randint(max(calls_per_day - 3, 1), calls_per_day + 3)):
            customer = random.choice(customers) if random.random() > 0.3 else None
            outcome = random.choice(list(CallOutcome))
            call = CallLogModel(
                customer_id=customer.id if customer else None,
                phone_number=customer.phone if customer else random_phone(),
                direction=random.choice([CallDirection.INBOUND, CallDirection.INBOUND, CallDirection.OUTBOUND]).value,
                duration=random.randint(20, 600),
                outcome=outcome.value,
                transcript=random.choice(TRANSCRIPTS),
                ai_generated=random.random() > 0.4,
                follow_up_required=outcome == CallOutcome.CALLBACK_REQUESTED,
            )
            call.created_at = now - timedelta(days=offset, minutes=random.randint(0, 600))
            session.add(call)
            calls.append(call)

    await session.flush()
    print(f"✓ Created {len(calls)} call logs")
    return calls


async def create_campaigns(session: AsyncSession) -> None:
    """Create a few marketing campaigns."""
    print("Creating campaigns...")
    rows = [
        ("Spring AC tune-up", "email", "active", 420, 180),
        ("Furnace check reminder", "sms", "completed", 310, 0),
        ("Water heater promo", "voice", "draft", 0, 0),
    ]
    for name, kind, status, sent, opened in rows:
        session.add(CampaignModel(
            name=name,
            type=kind,
            status=status,
            message_template=f"Hi {{firstName}}, {name.lower()} is here!",
            sent_count=sent,
            open_count=opened,
        ))
    await session.flush()
    print(f"✓ Created {len(rows)} campaigns")


async def clear_all_data(session: AsyncSession) -> None:
    """Clear all data; children first."""
    print("Clearing existing data...")
    for model in (
        InvoiceItemModel, InvoiceModel, QuoteItemModel, QuoteModel,
        CallLogModel, JobModel, CampaignModel, CustomerModel,
    ):
        await session.execute(delete(model))
        print(f"  Cleared {model.__tablename__}")
    await session.flush()
    print("✓ Data cleared")


async def main() -> None:
    """Run the seeding script."""
    parser = argparse.ArgumentParser(description="Seed the Call Mate database")
    parser.add_argument("--clear", action="store_true", help="Clear all data first")
    parser.add_argument("--customers", action="store_true", help="Seed only customers")
    parser.add_argument("--jobs", action="store_true", help="Seed only jobs")
    parser.add_argument("--quotes", action="store_true", help="Seed only quotes and invoices")
    parser.add_argument("--calls", action="store_true", help="Seed only call logs")
    parser.add_argument("--campaigns", action="store_true", help="Seed only campaigns")
    args = parser.parse_args()

    seed_all = not any([args.customers, args.jobs, args.quotes, args.calls, args.campaigns])

    print(f"Database: {os.environ['CALLMATE_DATABASE__URL']}")
    await init_db()

    try:
        async with get_db_context() as session:
            if args.clear:
                await clear_all_data(session)

            customers = []
            if seed_all or args.customers:
                customers = await create_customers(session)
            if not customers:
                customers = list((await session.execute(select(CustomerModel))).scalars().all())

            if (seed_all or args.jobs or args.quotes or args.calls) and not customers:
                print("Warning: No customers found; run with --customers first")
                return

            if seed_all or args.jobs:
                await create_jobs(session, customers)
            if seed_all or args.quotes:
                await create_quotes(session, customers)
            if seed_all or args.calls:
                await create_call_logs(session, customers)
            if seed_all or args.campaigns:
                await create_campaigns(session)
            if seed_all:
                await AiAgentSettingsRepository(session).get_or_create_default()
    finally:
        await close_db()

    print("\n✓ Seeding complete!")


if __name__ == "__main__":
    asyncio.run(main())
