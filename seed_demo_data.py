"""
Demo Data Seeder for the Recipe API

Creates:
- the three demo accounts (admin, user1, chef) in the users table when
  CREDENTIALS_BACKEND=database
- a handful of sample recipes in whichever storage backend is configured

Run against the same environment (.env) as the server:
    python seed_demo_data.py
"""
from recipe_api.config import settings
from recipe_api.database import Base, get_session_factory
from recipe_api.exceptions import DuplicateUserError, RecipeAPIError
from recipe_api.schemas.auth import Identity
from recipe_api.schemas.recipe import RecipeInput
from recipe_api.services.credentials import DatabaseCredentialStore
from recipe_api.storage import build_recipe_store

DEMO_USERS = [
    {"username": "admin", "password": "admin123", "email": "admin@example.com"},
    {"username": "user1", "password": "password123", "email": "user1@example.com"},
    {"username": "chef", "password": "cooking456", "email": "chef@example.com"},
]

DEMO_RECIPES = [
    {
        "name": "Tomato Soup",
        "ingredients": ["tomatoes", "onion", "garlic", "vegetable stock", "salt"],
        "instructions": "Sweat the onion and garlic, add tomatoes and stock, simmer 20 minutes, blend.",
        "cooking_time": "30 minutes",
        "servings": 4,
        "category": "starter",
    },
    {
        "name": "Chocolate Cake",
        "ingredients": ["flour", "sugar", "cocoa", "eggs", "butter"],
        "instructions": "Cream butter and sugar, beat in eggs, fold in flour and cocoa, bake at 180C.",
        "cooking_time": "1 hour",
        "servings": 8,
        "category": "dessert",
    },
    {
        "name": "Chocolate Chip Cookies",
        "ingredients": ["flour", "butter", "brown sugar", "chocolate chips", "eggs"],
        "instructions": "Mix, scoop onto a tray and bake for 12 minutes.",
        "cooking_time": "25 minutes",
        "servings": 24,
        "category": "dessert",
    },
    {
        "name": "Spaghetti Aglio e Olio",
        "ingredients": ["spaghetti", "garlic", "olive oil", "chili flakes", "parsley"],
        "instructions": "Cook pasta; warm sliced garlic and chili in oil; toss with pasta and parsley.",
        "cooking_time": "15 minutes",
        "servings": 2,
        "category": "main",
    },
]


def seed_users(session_factory) -> Identity:
    """Create demo accounts and return the chef identity used as recipe author"""
    store = DatabaseCredentialStore(session_factory, bcrypt_rounds=settings.BCRYPT_ROUNDS)
    author = Identity(username="chef")

    for user in DEMO_USERS:
        try:
            created = store.create_user(user["username"], user["password"], email=user["email"])
            print(f"[+] Created user: {user['username']}")
        except DuplicateUserError:
            created = store.get_user_by_username(user["username"])
            print(f"[=] User exists: {user['username']}")
        if created.username == "chef":
            author = Identity(username=created.username, user_id=created.id)

    return author


def seed_demo_data() -> None:
    print("=" * 50)
    print("Recipe API Demo Data Seeder")
    print(f"Storage backend: {settings.STORAGE_BACKEND}")
    print(f"Credentials backend: {settings.CREDENTIALS_BACKEND}")
    print("=" * 50)

    uses_database = "database" in (settings.STORAGE_BACKEND, settings.CREDENTIALS_BACKEND)
    session_factory = get_session_factory() if uses_database else None
    if session_factory is not None:
        # Migrations are the source of truth; this only fills gaps on a blank dev database
        Base.metadata.create_all(bind=session_factory.kw["bind"])

    author = Identity(username="chef")
    if settings.CREDENTIALS_BACKEND == "database":
        print("\nCreating demo users...")
        author = seed_users(session_factory)

    print("\nCreating sample recipes...")
    store = build_recipe_store(settings, session_factory)
    existing = {r.name for r in store.list_recipes()}
    created = 0
    for recipe in DEMO_RECIPES:
        if recipe["name"] in existing:
            print(f"[=] Recipe exists: {recipe['name']}")
            continue
        saved = store.save_recipe(RecipeInput(**recipe), author)
        created += 1
        print(f"[+] Created recipe: {saved.name} ({saved.id})")

    print("\n" + "=" * 50)
    print("Demo data seeding complete!")
    print(f"Recipes created: {created}")


if __name__ == "__main__":
    try:
        seed_demo_data()
    except RecipeAPIError as e:
        print(f"\n[-] Error during seeding: {e}")
        raise SystemExit(1)
