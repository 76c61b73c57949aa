# init_db.py
from dotenv import load_dotenv
load_dotenv()

from app.database import init_db, DB_URL  # noqa: E402

print("⏳ Creating tables on", DB_URL.split("@")[-1])
init_db()
print("✔ users, reviews, review_comments and remembered_addresses are ready.")
