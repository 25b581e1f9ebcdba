"""
Database seeding script for development.

Creates the ADMIN, COORDINATOR and crew accounts, one ambulance, the
central store spaces and the standard USVB kits, plus the configuration
defaults. Run it after the database is reachable; it is a no-op when the
admin account already exists.
"""

import asyncio

from sqlalchemy import select

from ambureview.app.core.security import get_password_hash
from ambureview.app.db.session import AsyncSessionLocal, engine, Base
from ambureview.app.domain.inventory.status import kit_material_status
from ambureview.app.models.ambulance import Ambulance
from ambureview.app.models.ampulario import Space
from ambureview.app.models.checklist import ChecklistTemplate, ChecklistItem
from ambureview.app.models.enums import UserRole
from ambureview.app.models.inventory_enums import KitCategory
from ambureview.app.models.review_enums import ChecklistPeriodicity, ChecklistItemType
from ambureview.app.models.user import User
from ambureview.app.models.usvb import UsvbKit, UsvbKitMaterial
from ambureview.app.services.config_store import config_store

SPACES = [
    ("Nevera", "Refrigerated medication"),
    ("Armario A", "Ampoules, intravenous and intramuscular"),
    ("Armario B", "Nebulisation and oral medication"),
]

KITS = [
    (1, "Mochila Principal", KitCategory.BACKPACK, [
        ("Tensiómetro", 1), ("Fonendoscopio", 1), ("Pulsioxímetro", 1), ("Glucómetro", 1),
    ]),
    (2, "Mochila Vía Aérea", KitCategory.AIRWAY, [
        ("Cánulas Guedel (juego)", 1), ("Mascarilla laríngea", 2), ("Ambú adulto", 1),
    ]),
    (3, "EPIs", KitCategory.PPE, [
        ("Guantes M (caja)", 2), ("Mascarilla FFP2", 10), ("Bata desechable", 4),
    ]),
    (4, "Oxigenoterapia", KitCategory.OXYGEN, [
        ("Botella O2 portátil", 1), ("Mascarilla reservorio", 3), ("Gafas nasales", 3),
    ]),
]

DAILY_TEMPLATE_ITEMS = [
    ("Pastillas de freno (delanteras)", ChecklistItemType.OKKO, "Frenos"),
    ("Líquido de frenos (nivel y estado)", ChecklistItemType.OKKO, "Frenos"),
    ("Presión neumático delantero izquierdo", ChecklistItemType.NUMBER, "Neumáticos"),
    ("Luces de cruce", ChecklistItemType.OKKO, "Luces"),
    ("Nivel de aceite motor", ChecklistItemType.OKKO, "Motor"),
]


async def _seed_users(db, ambulance: Ambulance):
    users = [
        ("admin", "admin@ambureview.es", "admin123", UserRole.ADMIN, None),
        ("coordinador", "coordinador@ambureview.es", "coord123", UserRole.COORDINATOR, None),
        ("tes1", "tes1@ambureview.es", "tes123", UserRole.USER, ambulance.id),
    ]
    for username, email, password, role, ambulance_id in users:
        db.add(User(
            email=email,
            username=username,
            full_name=username.title(),
            hashed_password=get_password_hash(password),
            role=role,
            assigned_ambulance_id=ambulance_id,
            is_active=True,
        ))
        print(f"✅ Created {role.value} user (username: {username}, password: {password})")


async def _seed_kits(db):
    for number, name, category, materials in KITS:
        kit = UsvbKit(number=number, name=name, category=category)
        db.add(kit)
        await db.flush()
        for position, (material_name, target) in enumerate(materials):
            db.add(UsvbKitMaterial(
                kit_id=kit.id,
                name=material_name,
                position=position,
                quantity=target,
                target_quantity=target,
                status=kit_material_status(target, target),
            ))
        print(f"✅ Created USVB kit {number}: {name} ({len(materials)} materials)")


async def _seed_checklist_template(db):
    template = ChecklistTemplate(name="Revisión diaria del vehículo", periodicity=ChecklistPeriodicity.DAILY)
    db.add(template)
    await db.flush()
    for position, (label, item_type, category) in enumerate(DAILY_TEMPLATE_ITEMS):
        db.add(ChecklistItem(
            template_id=template.id, label=label, type=item_type, category=category, position=position
        ))
    print(f"✅ Created checklist template '{template.name}' ({len(DAILY_TEMPLATE_ITEMS)} items)")


async def seed_data():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        existing_admin = (await db.execute(select(User).where(User.username == "admin"))).scalar_one_or_none()
        if existing_admin:
            print("ℹ️  ADMIN user already exists, skipping seeding")
            return

        ambulance = Ambulance(code="AMB-01", plate="0000-AAA", name="Alfa 1", model="Mercedes Sprinter")
        db.add(ambulance)
        await db.flush()
        print(f"✅ Created ambulance {ambulance.code}")

        await _seed_users(db, ambulance)

        for name, description in SPACES:
            db.add(Space(name=name, description=description))
        print(f"✅ Created {len(SPACES)} central store spaces")

        await _seed_kits(db)
        await _seed_checklist_template(db)

        await db.commit()
        created = await config_store.bootstrap(db)
        print(f"✅ Wrote {created} configuration defaults")

        print("\n🎉 Seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed_data())
