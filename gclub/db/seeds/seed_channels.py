"""Seed the default community channels."""

from sqlalchemy.orm import Session
from gclub.models.channel import Channel


DEFAULT_CHANNELS = [
    ("Notices", "notices", "Announcements from the organizers"),
    ("Game Posts", "game-posts", "Recruit players for a meetup"),
    ("Free Talk", "free-talk", None),
    ("Reviews", "reviews", "Session reports and game reviews"),
]


def seed_channels(db: Session) -> None:
    """Insert default channels, appending after any existing ones."""
    next_order = db.query(Channel).count()
    for name, slug, description in DEFAULT_CHANNELS:
        if db.query(Channel).filter(Channel.slug == slug).first():
            continue
        db.add(Channel(name=name, slug=slug, description=description, order=next_order))
        next_order += 1

    db.commit()
    print(f"✅ Seeded {len(DEFAULT_CHANNELS)} channels")
