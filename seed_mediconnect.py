from mediconnect.database import Base, SessionLocal, engine
from mediconnect.models.clinical import Organization, User

ORGANIZATIONS = [
    {"name": "City General Hospital", "type": "hospital", "code": "CITY", "address": "123 Health Ave, Metro City"},
    {"name": "Metro Care Pharmacy", "type": "pharmacy", "code": "METRORX", "address": "8 Market St, Metro City"},
    {"name": "Precision Diagnostics Lab", "type": "lab", "code": "PRECLAB", "address": "41 Science Park, Metro City"},
    {"name": "MediConnect Platform", "type": "platform", "code": "PLATFORM", "address": None},
]

STAFF = {
    "CITY": [
        {"role": "admin", "employee_id": "ADM001", "name": "Admin Raj Patel"},
        {"role": "doctor", "employee_id": "DOC001", "name": "Dr. Sarah Chen"},
        {"role": "nurse", "employee_id": "NUR001", "name": "Nurse Priya Sharma"},
    ],
    "METRORX": [
        {"role": "pharmacy", "employee_id": "PHARM001", "name": "Pharmacist John Doe"},
    ],
    "PRECLAB": [
        {"role": "diagnostic", "employee_id": "LAB001", "name": "Lab Tech Mike Ross"},
    ],
    "PLATFORM": [
        {"role": "super_admin", "employee_id": "ROOT", "name": "Platform Super Admin"},
    ],
}

Base.metadata.create_all(bind=engine)
db = SessionLocal()

try:
    for data in ORGANIZATIONS:
        org = db.query(Organization).filter(Organization.code == data["code"]).first()
        if org is None:
            org = Organization(**data)
            db.add(org)
            db.flush()
            print(f"✅ Seeded organization {org.code} -> {org.name}")

        for member in STAFF[data["code"]]:
            exists = (
                db.query(User.id)
                .filter(User.organization_id == org.id, User.employee_id == member["employee_id"])
                .first()
            )
            if exists is None:
                db.add(User(organization_id=org.id, password="password", **member))
                print(f"✅ Seeded {member['role']} {member['employee_id']} -> {member['name']}")

    db.commit()
finally:
    db.close()

print("🎉 MediConnect seeding completed!")
