#!/usr/bin/env python3

from datetime import timedelta
from decimal import Decimal

from travel_agency.database import SessionLocal, init_db
from travel_agency.models import (
    User, Destination, Trip, TripImage, Itinerary, Addon, TripDeparture, Setting
)
from travel_agency.auth.utils import get_password_hash
from travel_agency.utils import utcnow

USERS = [
    {"email": "admin@tms.com", "name": "System Admin", "phone": "+252612345678",
     "password": "Admin@123", "role": "SUPER_ADMIN"},
    {"email": "agent@tms.com", "name": "Travel Agent", "phone": "+252612345679",
     "password": "Agent@123", "role": "AGENT"},
    {"email": "customer@example.com", "name": "Mohamed Ahmed", "phone": "+252612345680",
     "password": "Customer@123", "role": "CUSTOMER", "nationality": "Somali"},
]

DESTINATIONS = [
    {"name": "Makkah", "country": "Saudi Arabia", "city": "Makkah",
     "description": "The holiest city in Islam, home to the Grand Mosque and the Kaaba",
     "image_url": "https://images.unsplash.com/photo-1591604129939-f1efa4d9f7fa?w=800"},
    {"name": "Istanbul", "country": "Turkey", "city": "Istanbul",
     "description": "Historic city bridging Europe and Asia with stunning Ottoman architecture",
     "image_url": "https://images.unsplash.com/photo-1524231757912-21f4fe3a7200?w=800"},
    {"name": "Dubai", "country": "UAE", "city": "Dubai",
     "description": "Modern metropolis with iconic skyscrapers and luxury shopping",
     "image_url": "https://images.unsplash.com/photo-1512453979798-5ea266f8880c?w=800"},
    {"name": "Mogadishu", "country": "Somalia", "city": "Mogadishu",
     "description": "The vibrant capital city with beautiful beaches and rich history",
     "image_url": "https://images.unsplash.com/photo-1578070181910-f1e514afdd08?w=800"},
]

# (destination name, base price, trip fields)
TRIPS = [
    ("Makkah", Decimal("1800"), {
        "title": "Umrah Package - Premium",
        "slug": "umrah-package-premium",
        "description": "Premium Umrah package with 5-star hotels and VIP services",
        "duration_days": 14,
        "category": "UMRAH",
        "inclusions": "- 5-star hotel accommodation\n- Airport transfers\n- Ziyarah tours\n- Visa assistance\n- Meals (breakfast)",
        "exclusions": "- International flights\n- Travel insurance\n- Personal expenses",
        "highlights": "- Stay near Haram\n- Professional guide\n- Group Umrah\n- VIP services",
    }),
    ("Istanbul", Decimal("1200"), {
        "title": "Istanbul City Tour - 7 Days",
        "slug": "istanbul-city-tour-7-days",
        "description": "Explore the magical city of Istanbul with guided tours",
        "duration_days": 7,
        "category": "CITY_TOUR",
        "inclusions": "- 4-star hotel\n- Daily breakfast\n- Airport transfers\n- City tours\n- Museum tickets",
        "exclusions": "- Flights\n- Lunch and dinner\n- Shopping expenses",
        "highlights": "- Blue Mosque\n- Hagia Sophia\n- Grand Bazaar\n- Bosphorus Cruise",
    }),
    ("Dubai", Decimal("2500"), {
        "title": "Dubai Experience - Luxury",
        "slug": "dubai-experience-luxury",
        "description": "Luxurious Dubai experience with world-class attractions",
        "duration_days": 5,
        "category": "LUXURY",
        "inclusions": "- 5-star hotel with sea view\n- Desert safari\n- Burj Khalifa tickets\n- Dubai Mall tour\n- Airport transfers",
        "exclusions": "- International flights\n- Meals\n- Additional activities",
        "highlights": "- Burj Khalifa at the Top\n- Desert Safari\n- Dubai Marina\n- Mall of Emirates",
    }),
]

UMRAH_ITINERARY = [
    (1, "Arrival in Makkah", "Airport pickup and hotel check-in"),
    (2, "Umrah Performance", "Perform Umrah with group guidance"),
    (7, "Travel to Madinah", "Transfer to Madinah for Ziyarah"),
    (14, "Departure", "Check-out and airport transfer"),
]

DEPARTURES_PER_TRIP = 3
DEPARTURE_CAPACITY = 40
CHILD_PRICE_RATIO = Decimal("0.7")

SETTINGS = {
    "company_info": {
        "name": "TMS Travel Agency",
        "email": "info@tms-agency.com",
        "phone": "+252612345678",
        "address": "Mogadishu, Somalia",
        "website": "https://tms-agency.com",
    },
    "payment_methods": {
        "enabled": ["CASH", "EVC", "ZAAD", "CARD"],
    },
}

def create_seed_data():
    init_db()
    db = SessionLocal()

    try:
        print("🚀 Creating seed data for the travel agency...")

        # 1. Users
        print("Creating users...")
        for data in USERS:
            if db.query(User).filter(User.email == data["email"]).first():
                continue
            db.add(User(
                email=data["email"],
                name=data["name"],
                phone=data["phone"],
                password_hash=get_password_hash(data["password"]),
                role=data["role"],
                status="ACTIVE",
                nationality=data.get("nationality")
            ))
        db.flush()

        # 2. Destinations
        print("Creating destinations...")
        destinations = {}
        for data in DESTINATIONS:
            destination = db.query(Destination).filter(Destination.name == data["name"]).first()
            if not destination:
                destination = Destination(**data)
                db.add(destination)
                db.flush()
            destinations[destination.name] = destination

        # 3. Trips with images, itinerary, addons and departures
        print("Creating trips and departures...")
        now = utcnow()
        created_trips = 0
        for destination_name, base_price, data in TRIPS:
            if db.query(Trip).filter(Trip.slug == data["slug"]).first():
                continue

            destination = destinations[destination_name]
            trip = Trip(destination_id=destination.id, status="PUBLISHED", **data)
            trip.images = [TripImage(url=destination.image_url, sort_order=0)]

            if data["category"] == "UMRAH":
                trip.itineraries = [
                    Itinerary(day_no=day_no, title=title, details=details)
                    for day_no, title, details in UMRAH_ITINERARY
                ]

            trip.addons = [
                Addon(name="Travel Insurance", description="Comprehensive travel insurance coverage",
                      price=Decimal("50"), type="INSURANCE"),
                Addon(name="Extra Baggage (20kg)", description="Additional baggage allowance",
                      price=Decimal("100"), type="EXTRA_BAGGAGE"),
            ]

            for i in range(1, DEPARTURES_PER_TRIP + 1):
                start_date = now + timedelta(days=30 * i)
                trip.departures.append(TripDeparture(
                    start_date=start_date,
                    end_date=start_date + timedelta(days=data["duration_days"]),
                    capacity=DEPARTURE_CAPACITY,
                    seats_reserved=0,
                    base_price=base_price,
                    child_price=(base_price * CHILD_PRICE_RATIO).quantize(Decimal("0.01")),
                    currency="USD",
                    status="AVAILABLE"
                ))

            db.add(trip)
            created_trips += 1

        # 4. Settings
        print("Creating system settings...")
        for key, value in SETTINGS.items():
            if not db.query(Setting).filter(Setting.key == key).first():
                db.add(Setting(key=key, value=value))

        db.commit()
        print("✅ Successfully created seed data!")
        print(f"Created:")
        print(f"  - {len(USERS)} users")
        print(f"  - {len(destinations)} destinations")
        print(f"  - {created_trips} trips with {DEPARTURES_PER_TRIP} departures each")
        print(f"  - {len(SETTINGS)} settings")
        print("\n📝 Test Credentials:")
        for data in USERS:
            print(f"  {data['role']}: {data['email']} / {data['password']}")

    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data()
