"""
Development fixture loader.

Builds the demo marketplace through the same services live requests use, so
seeded data is held to the same rules: bookings claim their slots, reviews
only land on completed bookings, one per reviewer.
"""
import logging
from datetime import date, time, timedelta

from sqlalchemy.orm import Session

from skilllink.bookings import BookingService
from skilllink.messaging import MessageService
from skilllink.models import User
from skilllink.moderation import ModerationService
from skilllink.reviews import ReviewGate
from skilllink.skills import SkillService
from skilllink.slots import SlotAvailabilityManager
from skilllink.users import UserService

logger = logging.getLogger(__name__)

USERS = [
    {
        "name": "John Smith",
        "email": "john@example.com",
        "role": "both",
        "current_mode": "provider",
        "bio": "Experienced web developer with 5+ years of experience in React and Node.js.",
        "location": "New York, NY",
    },
    {
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "role": "seeker",
        "bio": "Looking to learn new skills and expand my horizons.",
        "location": "San Francisco, CA",
    },
    {
        "name": "Bob Williams",
        "email": "bob@example.com",
        "role": "provider",
        "bio": "Certified yoga instructor with 10+ years of experience.",
        "location": "Los Angeles, CA",
    },
    {
        "name": "Emma Davis",
        "email": "emma@example.com",
        "role": "both",
        "current_mode": "seeker",
        "bio": "Professional photographer and amateur cook looking to exchange skills.",
        "location": "Chicago, IL",
    },
    {
        "name": "Michael Brown",
        "email": "michael@example.com",
        "role": "admin",
        "bio": "Platform administrator and community manager.",
        "location": "Austin, TX",
    },
]

SKILLS = {
    "john@example.com": [
        ("Web Development", "Technology", "provider", "Full-stack web development with React, Node.js, and MongoDB."),
        ("Mobile App Development", "Technology", "provider", "iOS and Android app development with React Native."),
        ("Cooking", "Cooking", "seeker", "Interested in learning Italian cuisine."),
    ],
    "bob@example.com": [
        ("Yoga", "Fitness", "provider", "Hatha and Vinyasa yoga for all levels."),
        ("Meditation", "Fitness", "provider", "Mindfulness meditation techniques for stress reduction."),
    ],
    "emma@example.com": [
        ("Photography", "Arts & Crafts", "provider", "Portrait and landscape photography."),
        ("Cooking", "Cooking", "provider", "Baking and pastry making."),
        ("Web Development", "Technology", "seeker", "Interested in learning front-end development."),
    ],
}

# (day offset from today, start hour)
SLOTS = {
    "john@example.com": [(0, 9), (0, 11), (1, 14)],
    "bob@example.com": [(0, 8), (0, 17), (2, 8)],
    "emma@example.com": [(1, 10), (3, 15)],
}


def seed_database(db: Session, today: date | None = None) -> dict:
    """Populate an empty store with the demo graph and summarize what was written."""
    today = today or date.today()
    results = {
        "users": [],
        "skills": [],
        "slots": [],
        "bookings": [],
        "reviews": [],
        "messages": [],
        "flags": [],
    }

    existing = db.query(User).filter(User.email.in_([u["email"] for u in USERS])).all()
    if existing:
        logger.info(f"Seed skipped, {len(existing)} demo users already present")
        results["users"] = [f"Skipped existing user: {u.email}" for u in existing]
        return {"success": True, "skipped": True, "results": results, "createdUsers": 0}

    logger.info("Starting database seeding...")
    users_svc = UserService(db)
    created = {}
    for profile in USERS:
        user = users_svc.register(
            name=profile["name"], email=profile["email"], role=profile["role"], bio=profile["bio"],
            location=profile["location"],
        )
        if profile.get("current_mode"):
            user = users_svc.set_mode(user, profile["current_mode"])
        created[user.email] = user
        results["users"].append(f"Created user: {user.email}")

    skills_svc = SkillService(db)
    offered = {}
    for email, skills in SKILLS.items():
        for name, category, intent, description in skills:
            skill = skills_svc.add(created[email], name, category, intent, description)
            offered.setdefault(email, {})[(name, intent)] = skill
            results["skills"].append(f"Added skill {name} for {email}")

    slot_mgr = SlotAvailabilityManager(db)
    slots = {}
    for email, windows in SLOTS.items():
        for offset, hour in windows:
            slot = slot_mgr.create_slot(
                created[email], today + timedelta(days=offset), time(hour, 0), time(hour + 1, 0)
            )
            slots.setdefault(email, []).append(slot)
            results["slots"].append(f"Added slot for {email}")

    john, alice, bob, emma, michael = (created[u["email"]] for u in USERS)
    bookings = BookingService(db)

    web = bookings.create(
        alice, john.id, slots["john@example.com"][0].id, "Web Development Session",
        notes="Looking forward to learning React basics.", payment_amount=50.0,
    )
    bookings.update_status(web.id, john, "confirmed")
    bookings.update_payment_status(web.id, alice, "paid")
    results["bookings"].append(f"Created booking: {web.id}")

    yoga = bookings.create(
        alice, bob.id, slots["bob@example.com"][0].id, "Morning Yoga Session",
        notes="First time trying yoga, please be gentle.", payment_amount=30.0,
    )
    bookings.update_status(yoga.id, bob, "confirmed")
    bookings.update_payment_status(yoga.id, alice, "paid")
    bookings.update_status(yoga.id, bob, "completed")
    results["bookings"].append(f"Created booking: {yoga.id}")

    swap = bookings.create(
        emma, john.id, slots["john@example.com"][1].id, "Web Development Basics",
        notes="Interested in learning HTML and CSS.", payment_amount=50.0,
        is_skill_swap=True, offered_skill_id=offered["emma@example.com"][("Photography", "provider")].id,
    )
    results["bookings"].append(f"Created booking: {swap.id}")

    gate = ReviewGate(db)
    first_review = gate.submit(
        yoga.id, alice, 5, "Bob is an excellent yoga instructor! Very patient and knowledgeable."
    )
    gate.submit(yoga.id, bob, 4, "Alice was attentive and eager to learn. Great student!")
    results["reviews"].extend([f"Created review for booking {yoga.id}"] * 2)

    messages = MessageService(db)
    for sender, recipient, content in [
        (alice, john, "Hi John, I'm interested in your web development services."),
        (john, alice, "Hello Alice! What specific areas are you looking to learn about?"),
        (alice, john, "I'd like to learn React and build a personal portfolio website."),
        (emma, john, "Hi John, would you be interested in a skill swap? "
                     "I can teach you photography in exchange for web development lessons."),
    ]:
        messages.send(sender, recipient.id, content)
        results["messages"].append(f"Message from {sender.id} to {recipient.id}")
    # Everything but Emma's swap proposal has been read
    messages.conversation(john, alice.id)
    messages.conversation(alice, john.id)

    flag = ModerationService(db).raise_flag(michael, "review", first_review.id, "Suspicious review - may be fake")
    results["flags"].append(f"Created admin flag for review ID {flag.item_id}")

    logger.info("Database seeding completed!")
    return {"success": True, "skipped": False, "results": results, "createdUsers": len(created)}
