# create_sample_data.py
# Seeds one verified user plus a few approved reviews around "Алматы, ул. Абая, 15"
# so the search pages have something to show.
from dotenv import load_dotenv
load_dotenv()

from app import addresses  # noqa: E402
from app.database import SessionLocal, init_db  # noqa: E402
from app.models import Review, User  # noqa: E402
from app.utils import average_rating, hash_password, overall_rating  # noqa: E402

SAMPLE_EMAIL = "test@example.com"

SAMPLE_REVIEWS = [
    dict(
        kind="property", city="Алматы", street="ул. Абая", building="15",
        number_of_rooms=2, floor=5,
        ratings={"apartment": 5, "courtyard": 4, "infrastructure": 5},
        review_text="Очень удобная квартира, хороший ремонт, тихий район. Рядом магазины, транспорт и парк.",
    ),
    dict(
        kind="residentialComplex", city="Алматы", street="ул. Абая", building="15",
        residential_complex="ЖК Солнечный",
        ratings={"apartment": 4, "residentialComplex": 4, "parking": 5},
        review_text="Современный жилой комплекс: красивый двор, детская площадка, подземная парковка.",
    ),
    dict(
        kind="landlord", city="Алматы", street="ул. Абая", building="15",
        landlord_name="Иван Петрович",
        ratings={"apartment": 5},
        review_text="Арендодатель всегда помогает с вопросами и никогда не задерживает возврат депозита.",
    ),
    dict(
        kind="tenant",
        tenant_full_name="Алексей Сергеевич", tenant_id_last_four="1234", tenant_phone_last_four="6543",
        from_month=1, from_year=2023, to_month=12, to_year=2023, rating=4,
        review_text="Своевременно платил аренду, содержал квартиру в чистоте, уважал соседей.",
    ),
    dict(
        kind="property", city="Алматы", street="ул. Достык", building="25",
        number_of_rooms=1, floor=3,
        ratings={"apartment": 3},
        review_text="Хорошая квартира в тихом районе, недалеко от метро. Ремонт средний.",
    ),
]


def main():
    init_db()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == SAMPLE_EMAIL).first()
        if not user:
            user = User(
                first_name="Тест",
                last_name="Пользователь",
                email=SAMPLE_EMAIL,
                password_hash=hash_password("Testpassword123"),
                email_verified=True,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            print("✓ Sample user created:", user.id)
        else:
            print("✓ Sample user already exists:", user.id)

        existing = db.query(Review).filter(Review.author_id == user.id).count()
        if existing:
            print(f"✓ Sample reviews already exist ({existing} found)")
            return

        for data in SAMPLE_REVIEWS:
            data = dict(data)
            ratings = data.pop("ratings", None)
            if ratings:
                data.update(ratings=ratings, average_rating=average_rating(ratings), rating=overall_rating(ratings))
            review = Review(author_id=user.id, is_approved=True, **data)
            db.add(review)
            db.commit()
            if review.city:
                addresses.remember_quietly(
                    db, review.city, review.street, review.building, review.residential_complex or ""
                )
            print(f"✓ Created {review.kind} review #{review.id}")

        print(f"✅ Created {len(SAMPLE_REVIEWS)} sample reviews")
        print("Try: GET /api/property/mixed-reviews?city=Алматы&street=Абая&building=15")
    finally:
        db.close()


if __name__ == "__main__":
    main()
