# fix_admin.py
import os

from dotenv import load_dotenv
load_dotenv()

from app.database import SessionLocal, init_db  # noqa: E402
from app.models import User  # noqa: E402
from app.utils import hash_password  # noqa: E402

init_db()
db = SessionLocal()
try:
    email = os.getenv("ADMIN_EMAIL", "admin@example.com").strip().lower()
    u = db.query(User).filter(User.email == email).first()
    if not u:
        u = User(
            first_name="Admin",
            last_name="User",
            email=email,
            password_hash=hash_password(os.getenv("ADMIN_PASSWORD", "Admin12345")),
        )
        db.add(u)
        db.commit()
        db.refresh(u)

    # Make the account an admin and fully enabled
    u.role = "admin"
    u.is_active = True
    u.email_verified = True
    u.email_verification_code = None
    u.email_verification_expires = None

    db.add(u)
    db.commit()
    print(f"[OK] admin {email} fixed and fully enabled")
finally:
    db.close()
