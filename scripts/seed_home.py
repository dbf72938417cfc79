# scripts/seed_home.py
"""
Seeds a block-based home page with an industry-personalized hero and a
contact page. Existing slugs are left untouched.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from blockcms.db.session import SessionLocal
from blockcms.schemas.content import ContentCreate
from blockcms.services.content_service import create_content, slug_taken

HOME_BLOCKS = [
    {
        "id": "hero-main",
        "type": "hero",
        "order": 0,
        "data": {
            "title": "Experimentation that pays for itself",
            "subtitle": "Strategy, implementation and analysis for teams that test.",
            "alignment": "center",
            "buttons": [
                {"text": "Book a call", "href": "/contact", "variant": "primary"},
                {"text": "Case studies", "href": "/case-studies", "variant": "secondary"},
            ],
            "personalization": {
                "enabled": True,
                "industryVariants": {
                    "Healthcare": {
                        "title": "Experimentation for healthcare teams",
                        "subtitle": "Compliant testing programs that move patient acquisition.",
                    },
                    "eCommerce": {
                        "title": "Grow average order value with every test",
                        "subtitle": "From checkout to merchandising, tested end to end.",
                    },
                    "B2B/SaaS": {
                        "title": "Turn trials into paying customers",
                    },
                },
            },
        },
    },
    {
        "id": "features",
        "type": "feature_grid",
        "order": 1,
        "data": {
            "heading": "What we do",
            "features": [
                {"icon": "🧪", "title": "Test strategy", "description": "Roadmaps tied to revenue."},
                {"icon": "⚙️", "title": "Implementation", "description": "Optimizely, VWO and in-house stacks."},
                {"icon": "📈", "title": "Analysis", "description": "Results you can defend."},
            ],
        },
    },
    {
        "id": "process",
        "type": "steps",
        "order": 2,
        "data": {
            "heading": "How an engagement runs",
            "structuredData": True,
            "steps": [
                {"title": "Audit", "description": "Review the current program and data quality."},
                {"title": "Plan", "description": "Prioritize hypotheses by expected impact."},
                {"title": "Run", "description": "Ship, monitor and analyze experiments."},
            ],
        },
    },
    {
        "id": "cta",
        "type": "cta_banner",
        "order": 3,
        "data": {
            "heading": "Ready to start testing?",
            "description": "Tell us where you are and we will map the first ninety days.",
            "button": {"text": "Contact us", "href": "/contact"},
        },
    },
]

CONTACT_BLOCKS = [
    {
        "id": "contact",
        "type": "contact_form",
        "order": 0,
        "data": {
            "heading": "Talk to us",
            "subheading": "We usually reply within one business day.",
            "reasons": [
                {"title": "Program audits", "description": "Find out what is holding results back."},
                {"title": "Implementation", "description": "Get experiments live faster."},
            ],
            "personalization": {
                "enabled": True,
                "industryVariants": {
                    "Healthcare": {"headline": "Questions about testing in a regulated space? Ask away."},
                },
            },
        },
    },
]

PAGES = [
    ("home", "Home", HOME_BLOCKS),
    ("contact", "Contact", CONTACT_BLOCKS),
]


def main() -> None:
    db: Session = SessionLocal()
    try:
        for slug, title, blocks in PAGES:
            if slug_taken(db, slug):
                print(f"[SKIP] {slug} already exists")
                continue
            payload = ContentCreate(
                title=title,
                slug=slug,
                content_type="static_page",
                status="published",
                content_blocks=blocks,
                meta_description=f"{title} page",
            )
            item, _ = create_content(db, payload)
            print(f"[OK] Seeded {item.slug} (id={item.id})")
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    main()
