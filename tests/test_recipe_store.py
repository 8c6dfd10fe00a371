"""Tests for the recipe store contract, run against both backends"""
import json
import threading

import pytest

from recipe_api.config import Settings
from recipe_api.exceptions import RecipeNotFoundError, RecipeValidationError, StorageUnavailableError
from recipe_api.schemas.auth import Identity
from recipe_api.schemas.recipe import RecipeInput
from recipe_api.storage import JSONRecipeStore, SQLRecipeStore, build_recipe_store


def make_recipe(**overrides) -> RecipeInput:
    data = {
        "name": "Soup",
        "ingredients": ["water", "salt"],
        "instructions": "boil",
        "cooking_time": "10 minutes",
        "servings": 2,
        "category": "starter",
    }
    data.update(overrides)
    return RecipeInput(**data)


def test_save_new_recipe_assigns_id_and_timestamps(store, clock):
    """Test that a recipe without id is inserted with a generated id"""
    saved = store.save_recipe(make_recipe())

    assert saved.id
    assert saved.created_at == clock.now
    assert saved.updated_at == clock.now
    assert store.get_recipe(saved.id) == saved


def test_save_with_unknown_id_inserts(store):
    """Test that an unused id is kept and inserted"""
    saved = store.save_recipe(make_recipe(id="soup-1"))

    assert saved.id == "soup-1"
    assert store.get_recipe("soup-1").name == "Soup"


def test_update_keeps_created_at(store, clock):
    """Test that an update replaces fields and refreshes only updated_at"""
    original = store.save_recipe(make_recipe())
    clock.advance(minutes=5)

    updated = store.save_recipe(make_recipe(id=original.id, name="Tomato Soup", servings=4))

    assert updated.id == original.id
    assert updated.name == "Tomato Soup"
    assert updated.servings == 4
    assert updated.created_at == original.created_at
    assert updated.updated_at == clock.now
    assert len(store.list_recipes()) == 1


def test_update_at_same_instant_still_advances(store):
    """Test that updated_at strictly increases even without clock movement"""
    original = store.save_recipe(make_recipe())
    updated = store.save_recipe(make_recipe(id=original.id, name="Soup v2"))

    assert updated.updated_at > original.updated_at
    assert updated.created_at == original.created_at


def test_list_newest_first(store, clock):
    """Test that listings are ordered by creation time, newest first"""
    first = store.save_recipe(make_recipe(name="First"))
    clock.advance(seconds=1)
    second = store.save_recipe(make_recipe(name="Second"))
    clock.advance(seconds=1)
    third = store.save_recipe(make_recipe(name="Third"))

    # Updating the oldest does not move it
    clock.advance(seconds=1)
    store.save_recipe(make_recipe(id=first.id, name="First edited"))

    assert [r.id for r in store.list_recipes()] == [third.id, second.id, first.id]


def test_empty_store_lists_nothing(store):
    """Test listing an empty store"""
    assert store.list_recipes() == []
    assert store.search("anything") == []
    assert store.list_by_category("dessert") == []


def test_get_missing_recipe(store):
    """Test that a missing id raises RecipeNotFoundError"""
    with pytest.raises(RecipeNotFoundError):
        store.get_recipe("does-not-exist")


def test_delete_recipe(store):
    """Test that a deleted recipe is gone and a second delete raises"""
    saved = store.save_recipe(make_recipe())

    store.delete_recipe(saved.id)

    with pytest.raises(RecipeNotFoundError):
        store.get_recipe(saved.id)
    with pytest.raises(RecipeNotFoundError):
        store.delete_recipe(saved.id)


def test_list_by_category(store, clock):
    """Test exact, case-sensitive category filtering"""
    store.save_recipe(make_recipe(name="Soup", category="starter"))
    clock.advance(seconds=1)
    cake = store.save_recipe(make_recipe(name="Cake", category="dessert"))
    clock.advance(seconds=1)
    pie = store.save_recipe(make_recipe(name="Pie", category="dessert"))

    assert [r.id for r in store.list_by_category("dessert")] == [pie.id, cake.id]
    assert store.list_by_category("Dessert") == []


def test_search_by_name_substring(store, clock):
    """Test case-insensitive name search"""
    cake = store.save_recipe(make_recipe(name="Chocolate Cake", ingredients=["flour", "cocoa"]))
    clock.advance(seconds=1)
    cookies = store.save_recipe(
        make_recipe(name="Chocolate Chip Cookies", ingredients=["flour", "chocolate chips"])
    )
    clock.advance(seconds=1)
    store.save_recipe(make_recipe(name="Soup"))

    assert [r.id for r in store.search("choc")] == [cookies.id, cake.id]
    assert store.search("xyz-none") == []


def test_search_by_exact_ingredient(store, clock):
    """Test that ingredient matches are exact, not substring"""
    soup = store.save_recipe(make_recipe(name="Soup", ingredients=["water", "salt"]))
    clock.advance(seconds=1)
    store.save_recipe(make_recipe(name="Bread", ingredients=["flour", "sea salt"]))

    assert [r.id for r in store.search("salt")] == [soup.id]
    assert store.search("sal") == []


def test_search_treats_wildcards_literally(store):
    """Test that LIKE wildcards in the term match literally"""
    store.save_recipe(make_recipe(name="Soup"))

    assert store.search("%") == []
    assert store.search("_") == []


def test_ingredient_order_preserved(store):
    """Test that ingredient order survives a round trip"""
    ingredients = ["onion", "garlic", "tomatoes", "basil"]
    saved = store.save_recipe(make_recipe(ingredients=ingredients))

    assert store.get_recipe(saved.id).ingredients == ingredients


@pytest.mark.parametrize(
    "field,value",
    [
        ("name", ""),
        ("ingredients", []),
        ("servings", 0),
        ("cooking_time", "x" * 51),
    ],
)
def test_invalid_recipe_rejected_before_storage(store, field, value):
    """Test that invalid recipes raise RecipeValidationError and are not stored"""
    data = make_recipe().model_dump()
    data[field] = value
    invalid = RecipeInput.model_construct(**data)

    with pytest.raises(RecipeValidationError) as exc_info:
        store.save_recipe(invalid)

    assert exc_info.value.field == field
    assert store.list_recipes() == []


def test_identity_recorded_on_sql_rows(sql_store: SQLRecipeStore, db_credentials, clock):
    """Test that the database backend records creator and modifier ids"""
    chef = db_credentials.create_user("chef", "cooking456")
    admin = db_credentials.create_user("admin", "admin123")

    saved = sql_store.save_recipe(make_recipe(), Identity(username="chef", user_id=chef.id))
    clock.advance(seconds=1)
    updated = sql_store.save_recipe(
        make_recipe(id=saved.id, name="Soup v2"), Identity(username="admin", user_id=admin.id)
    )

    assert saved.created_by == chef.id
    assert updated.created_by == chef.id
    assert updated.updated_by == admin.id


# ===== JSON file specifics =====

def test_json_file_created_on_startup(tmp_path, clock):
    """Test that a missing file is initialised to an empty array"""
    path = tmp_path / "nested" / "recipes.json"
    JSONRecipeStore(path, clock=clock)

    assert json.loads(path.read_text()) == []


def test_json_file_contents(json_store: JSONRecipeStore):
    """Test that the file holds a pretty-printed array of stored recipes"""
    saved = json_store.save_recipe(make_recipe(), Identity(username="chef"))

    text = json_store.path.read_text(encoding="utf-8")
    payload = json.loads(text)

    assert "\n  " in text
    assert len(payload) == 1
    assert payload[0]["id"] == saved.id
    assert payload[0]["ingredients"] == ["water", "salt"]
    assert "created_by" not in payload[0]
    assert list(json_store.path.parent.glob("*.tmp")) == []


def test_json_survives_reopen(tmp_path, clock):
    """Test that a second store on the same file sees saved recipes"""
    path = tmp_path / "recipes.json"
    saved = JSONRecipeStore(path, clock=clock).save_recipe(make_recipe())

    reopened = JSONRecipeStore(path, clock=clock)

    assert reopened.get_recipe(saved.id) == saved


def test_json_corrupt_file_is_unavailable(json_store: JSONRecipeStore):
    """Test that an unparseable file raises StorageUnavailableError, not not-found"""
    json_store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageUnavailableError):
        json_store.list_recipes()
    with pytest.raises(StorageUnavailableError):
        json_store.get_recipe("anything")
    with pytest.raises(StorageUnavailableError):
        json_store.ping()


def test_json_failed_write_keeps_file(json_store: JSONRecipeStore, monkeypatch):
    """Test that a failed rewrite leaves the previous file intact"""
    saved = json_store.save_recipe(make_recipe())

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("recipe_api.storage.json_store.os.replace", fail_replace)

    with pytest.raises(StorageUnavailableError):
        json_store.save_recipe(make_recipe(name="Cake"))

    monkeypatch.undo()
    assert [r.id for r in json_store.list_recipes()] == [saved.id]
    assert list(json_store.path.parent.glob("*.tmp")) == []


# ===== Backend selection =====

def test_build_json_store(tmp_path):
    """Test that the json backend is the default"""
    config = Settings(STORAGE_BACKEND="json", RECIPES_FILE=str(tmp_path / "r.json"))
    assert isinstance(build_recipe_store(config), JSONRecipeStore)


def test_build_database_store(session_factory):
    """Test selecting the database backend"""
    config = Settings(STORAGE_BACKEND="database")
    assert isinstance(build_recipe_store(config, session_factory), SQLRecipeStore)


def test_build_database_store_requires_session_factory():
    """Test that database storage cannot be built without a database"""
    with pytest.raises(ValueError):
        build_recipe_store(Settings(STORAGE_BACKEND="database"))


def test_backends_agree(json_store: JSONRecipeStore, sql_store: SQLRecipeStore, clock):
    """Test that the same operations give the same observable results on both backends"""
    for backend in (json_store, sql_store):
        backend.save_recipe(make_recipe(id="soup", name="Tomato Soup", ingredients=["tomatoes", "salt"]))
    clock.advance(seconds=1)
    for backend in (json_store, sql_store):
        backend.save_recipe(make_recipe(id="cake", name="Chocolate Cake", category="dessert"))
    clock.advance(seconds=1)
    for backend in (json_store, sql_store):
        backend.save_recipe(make_recipe(id="soup", name="Tomato Soup", servings=6))
        backend.delete_recipe("cake")

    assert json_store.list_recipes() == sql_store.list_recipes()
    assert json_store.search("tomatoes") == sql_store.search("tomatoes")
    assert json_store.list_by_category("starter") == sql_store.list_by_category("starter")


def test_soup_scenario(store):
    """Test create, fetch and update of the Soup recipe"""
    soup = store.save_recipe(make_recipe())

    fetched = store.get_recipe(soup.id)
    assert fetched.id == soup.id
    assert fetched.created_at == fetched.updated_at

    store.save_recipe(make_recipe(id=soup.id, servings=4))

    updated = store.get_recipe(soup.id)
    assert updated.servings == 4
    assert updated.updated_at > updated.created_at


def test_update_only_save_of_missing_id(store):
    """Test that an update-only save of an unknown id raises and writes nothing"""
    with pytest.raises(RecipeNotFoundError):
        store.save_recipe(make_recipe(id="gone"), must_exist=True)

    assert store.list_recipes() == []


def test_update_only_save_after_delete(store, clock):
    """Test that an update-only save does not resurrect a deleted recipe"""
    saved = store.save_recipe(make_recipe())
    store.delete_recipe(saved.id)
    clock.advance(seconds=1)

    with pytest.raises(RecipeNotFoundError):
        store.save_recipe(make_recipe(id=saved.id, servings=4), must_exist=True)

    assert store.list_recipes() == []


def test_update_only_save_updates_existing(store, clock):
    """Test that an update-only save of a stored id behaves like an update"""
    saved = store.save_recipe(make_recipe())
    clock.advance(seconds=1)

    updated = store.save_recipe(make_recipe(id=saved.id, servings=4), must_exist=True)

    assert updated.servings == 4
    assert updated.created_at == saved.created_at


def test_update_only_save_requires_id(store):
    """Test that an update-only save without an id is a validation error"""
    with pytest.raises(RecipeValidationError) as exc_info:
        store.save_recipe(make_recipe(), must_exist=True)

    assert exc_info.value.field == "id"


def test_json_concurrent_saves_lose_nothing(json_store: JSONRecipeStore):
    """Test that concurrent writers never overwrite each other's records"""
    errors = []

    def writer(n: int):
        try:
            for i in range(20):
                json_store.save_recipe(make_recipe(name=f"Recipe {n}-{i}"))
        except Exception as exc:  # pragma: no cover
            errors.append(repr(exc))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    recipes = json_store.list_recipes()
    assert len(recipes) == 120
    assert len({r.id for r in recipes}) == 120
    assert len(json.loads(json_store.path.read_text(encoding="utf-8"))) == 120
