"""HTTP-level tests: routing, auth gating, status codes and wire format."""

from uuid import uuid4

import jsonschema
import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from partsmarket.config import settings
from partsmarket.models import Category, User
from partsmarket.services.auth_service import AuthService, issue_token
from partsmarket.services.category_service import CategoryService

API = "/api/v1"

TREE_NODE_SCHEMA = {
    "type": "object",
    "required": ["id", "name", "slug", "description", "parentId", "createdAt", "updatedAt", "subcategories"],
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "slug": {"type": "string"},
        "description": {"type": "string"},
        "parentId": {"type": ["string", "null"]},
        "imageUrl": {"type": ["string", "null"]},
        "subcategories": {"type": "array", "items": {"$ref": "#/$defs/node"}},
    },
}

TREE_SCHEMA = {
    "type": "array",
    "items": {"$ref": "#/$defs/node"},
    "$defs": {"node": TREE_NODE_SCHEMA},
}

ERROR_SCHEMA = {
    "type": "object",
    "required": ["message"],
    "properties": {
        "message": {"type": "string"},
        "error": {"type": "string"},
        "errors": {"type": "object", "additionalProperties": {"type": "string"}},
    },
    "additionalProperties": False,
}


def product_body(category: Category, **overrides) -> dict:
    body = {
        "title": "Front brake pad set",
        "description": "Low-dust ceramic pads for the front axle",
        "price": 49.9,
        "category": str(category.id),
        "oemNumber": "04465-02220",
        "compatibility": [{"make": "Toyota", "model": "Corolla", "year": 2018}],
        "images": ["front.jpg", "side.jpg", "box.jpg"],
    }
    body.update(overrides)
    return body


# ============================================================================
# TESTS: HEALTH
# ============================================================================

class TestHealth:

    async def test_health(self, client: AsyncClient):
        response = await client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["database"] == "ok"


# ============================================================================
# TESTS: CATEGORY READS
# ============================================================================

class TestCategoryReads:

    async def test_tree_shape(self, client: AsyncClient, brakes: Category, brake_pads: Category):
        response = await client.get(f"{API}/categories")

        assert response.status_code == 200
        data = response.json()
        jsonschema.validate(data, TREE_SCHEMA)
        assert [node["name"] for node in data] == ["Brakes"]
        assert data[0]["subcategories"][0]["name"] == "Brake Pads"
        assert data[0]["subcategories"][0]["parentId"] == str(brakes.id)

    async def test_empty_tree(self, client: AsyncClient):
        response = await client.get(f"{API}/categories")

        assert response.status_code == 200
        assert response.json() == []

    async def test_get_one_with_parent(self, client: AsyncClient, brakes: Category, brake_pads: Category):
        response = await client.get(f"{API}/categories/{brake_pads.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["slug"] == "brake-pads"
        assert data["parent"] == {"id": str(brakes.id), "name": "Brakes"}

    async def test_root_lists_child_ids(self, client: AsyncClient, brakes: Category, brake_pads: Category):
        response = await client.get(f"{API}/categories/{brakes.id}")

        data = response.json()
        assert data["parent"] is None
        assert data["subcategories"] == [str(brake_pads.id)]

    async def test_get_missing(self, client: AsyncClient):
        response = await client.get(f"{API}/categories/{uuid4()}")

        assert response.status_code == 404
        jsonschema.validate(response.json(), ERROR_SCHEMA)

    async def test_get_malformed_id(self, client: AsyncClient):
        response = await client.get(f"{API}/categories/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"
        assert "category_id" in response.json()["errors"]

    async def test_count(self, client: AsyncClient, brakes: Category, brake_pads: Category):
        response = await client.get(f"{API}/categories/count")

        assert response.status_code == 200
        assert response.json() == {"totalCategories": 2}

    async def test_search_requires_query(self, client: AsyncClient):
        response = await client.get(f"{API}/categories/search")

        assert response.status_code == 400
        assert response.json() == {"message": "Search query is required"}

    async def test_search_query_is_not_trimmed(self, client: AsyncClient, brakes: Category, brake_pads: Category):
        response = await client.get(f"{API}/categories/search", params={"query": "Brake "})

        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert response.json()["query"] == "Brake "

    async def test_search_returns_parent_context(self, client: AsyncClient, brakes: Category, brake_pads: Category):
        response = await client.get(f"{API}/categories/search", params={"query": "pads"})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["query"] == "pads"
        jsonschema.validate(data["results"], TREE_SCHEMA)
        assert data["results"][0]["id"] == str(brakes.id)
        assert data["results"][0]["subcategories"][0]["id"] == str(brake_pads.id)

    async def test_search_without_matches(self, client: AsyncClient, brakes: Category):
        response = await client.get(f"{API}/categories/search", params={"query": "xyz"})

        assert response.json() == {"results": [], "count": 0, "query": "xyz"}


# ============================================================================
# TESTS: CATEGORY WRITES
# ============================================================================

class TestCategoryWrites:

    async def test_create_requires_token(self, client: AsyncClient):
        response = await client.post(f"{API}/categories", json={"name": "Engine", "description": "Engine parts"})

        assert response.status_code == 401
        assert response.json() == {"message": "Authentication required"}

    async def test_create_requires_admin(self, client: AsyncClient, seller_headers: dict):
        response = await client.post(
            f"{API}/categories",
            json={"name": "Engine", "description": "Engine parts"},
            headers=seller_headers,
        )

        assert response.status_code == 403

    async def test_create_as_admin(self, client: AsyncClient, admin_headers: dict, brakes: Category):
        response = await client.post(
            f"{API}/categories",
            json={"name": "Brake Discs", "description": "Vented and drilled discs", "parentId": str(brakes.id)},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["slug"] == "brake-discs"
        assert data["parentId"] == str(brakes.id)
        assert data["subcategories"] == []

    async def test_open_writes_when_policy_disabled(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "CATEGORY_WRITES_REQUIRE_ADMIN", False)

        response = await client.post(f"{API}/categories", json={"name": "Engine", "description": "Engine parts"})

        assert response.status_code == 201

    async def test_missing_fields(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(f"{API}/categories", json={"name": "Engine"}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"message": "Name and description are required"}

    async def test_duplicate_sibling(self, client: AsyncClient, admin_headers: dict, brakes: Category):
        response = await client.post(
            f"{API}/categories",
            json={"name": "Brakes", "description": "Again"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Category with this name already exists"

    async def test_unknown_parent(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            f"{API}/categories",
            json={"name": "Orphan", "description": "No parent", "parentId": str(uuid4())},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Parent category not found"

    async def test_update(self, client: AsyncClient, admin_headers: dict, brakes: Category):
        response = await client.put(
            f"{API}/categories/{brakes.id}",
            json={"name": "Braking Systems"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["slug"] == "braking-systems"
        assert response.json()["description"] == "Braking system components"

    async def test_update_cycle_rejected(
        self, client: AsyncClient, admin_headers: dict, brakes: Category, brake_pads: Category
    ):
        response = await client.put(
            f"{API}/categories/{brakes.id}",
            json={"parentId": str(brake_pads.id)},
            headers=admin_headers,
        )

        assert response.status_code == 400

    async def test_update_missing(self, client: AsyncClient, admin_headers: dict):
        response = await client.put(f"{API}/categories/{uuid4()}", json={"name": "X"}, headers=admin_headers)

        assert response.status_code == 404

    async def test_delete_with_children(
        self, client: AsyncClient, admin_headers: dict, brakes: Category, brake_pads: Category
    ):
        response = await client.delete(f"{API}/categories/{brakes.id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == (
            "Cannot delete category with subcategories. Delete subcategories first."
        )

    async def test_delete_leaf(self, client: AsyncClient, admin_headers: dict, brake_pads: Category):
        response = await client.delete(f"{API}/categories/{brake_pads.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Category deleted successfully"}

        response = await client.get(f"{API}/categories/{brake_pads.id}")
        assert response.status_code == 404


# ============================================================================
# TESTS: PRODUCTS
# ============================================================================

class TestProducts:

    async def test_requires_token(self, client: AsyncClient):
        response = await client.get(f"{API}/products")

        assert response.status_code == 401

    async def test_validation_errors_are_collected(self, client: AsyncClient, seller_headers: dict, brakes: Category):
        response = await client.post(
            f"{API}/products",
            json=product_body(brakes, images=["a.jpg", "b.jpg"], compatibility=[{"make": "Honda", "model": "Civic"}]),
            headers=seller_headers,
        )

        assert response.status_code == 400
        data = response.json()
        jsonschema.validate(data, ERROR_SCHEMA)
        assert data["message"] == "Validation failed"
        assert set(data["errors"]) == {"images", "compatibility"}

    async def test_create(self, client: AsyncClient, seller_headers: dict, brakes: Category):
        response = await client.post(f"{API}/products", json=product_body(brakes), headers=seller_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["oemNumber"] == "04465-02220"
        assert data["category"] == {"id": str(brakes.id), "name": "Brakes"}
        assert "seller" not in data
        assert "sellerId" not in data

    async def test_list_and_search(self, client: AsyncClient, seller_headers: dict, brakes: Category):
        await client.post(f"{API}/products", json=product_body(brakes), headers=seller_headers)

        listed = await client.get(f"{API}/products", headers=seller_headers)
        found = await client.get(f"{API}/products/search", params={"query": "ceramic"}, headers=seller_headers)
        empty = await client.get(f"{API}/products/search", params={"query": "turbo"}, headers=seller_headers)

        assert [p["title"] for p in listed.json()] == ["Front brake pad set"]
        assert [p["title"] for p in found.json()] == ["Front brake pad set"]
        assert empty.json() == []

    async def test_update(self, client: AsyncClient, seller_headers: dict, brakes: Category):
        created = await client.post(f"{API}/products", json=product_body(brakes), headers=seller_headers)
        product_id = created.json()["id"]

        response = await client.put(f"{API}/products/{product_id}", json={"price": 39.5}, headers=seller_headers)

        assert response.status_code == 200
        assert response.json()["price"] == 39.5
        assert response.json()["title"] == "Front brake pad set"

    async def test_update_rejects_short_title(self, client: AsyncClient, seller_headers: dict, brakes: Category):
        created = await client.post(f"{API}/products", json=product_body(brakes), headers=seller_headers)

        response = await client.put(
            f"{API}/products/{created.json()['id']}", json={"title": "Pad"}, headers=seller_headers
        )

        assert response.status_code == 400
        assert "title" in response.json()["errors"]

    async def test_delete(self, client: AsyncClient, seller_headers: dict, brakes: Category):
        created = await client.post(f"{API}/products", json=product_body(brakes), headers=seller_headers)
        product_id = created.json()["id"]

        response = await client.delete(f"{API}/products/{product_id}", headers=seller_headers)
        assert response.status_code == 204

        response = await client.delete(f"{API}/products/{product_id}", headers=seller_headers)
        assert response.status_code == 404


# ============================================================================
# TESTS: ADMIN MODERATION
# ============================================================================

class TestAdminProducts:

    async def test_seller_is_forbidden(self, client: AsyncClient, seller_headers: dict):
        response = await client.get(f"{API}/admin/products", headers=seller_headers)

        assert response.status_code == 403
        assert response.json() == {"message": "Admin privileges required"}

    async def test_list_includes_moderation_fields(
        self, client: AsyncClient, seller_headers: dict, admin_headers: dict, brakes: Category
    ):
        await client.post(f"{API}/products", json=product_body(brakes), headers=seller_headers)

        response = await client.get(f"{API}/admin/products", headers=admin_headers)

        assert response.status_code == 200
        product = response.json()[0]
        assert product["status"] == "pending"
        assert product["compatibility"] == [{"make": "Toyota", "model": "Corolla", "year": 2018}]

    async def test_invalid_status(
        self, client: AsyncClient, seller_headers: dict, admin_headers: dict, brakes: Category
    ):
        created = await client.post(f"{API}/products", json=product_body(brakes), headers=seller_headers)

        response = await client.patch(
            f"{API}/admin/products/{created.json()['id']}/status",
            json={"status": "archived"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json() == {
            "message": "Invalid status value",
            "error": "Status must be 'pending', 'approved', or 'rejected'",
        }

    async def test_approve(self, client: AsyncClient, seller_headers: dict, admin_headers: dict, brakes: Category):
        created = await client.post(f"{API}/products", json=product_body(brakes), headers=seller_headers)
        product_id = created.json()["id"]

        response = await client.patch(
            f"{API}/admin/products/{product_id}/status",
            json={"status": "approved"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Product status updated successfully",
            "product": {"id": product_id, "title": "Front brake pad set", "status": "approved"},
        }

    async def test_status_of_missing_product(self, client: AsyncClient, admin_headers: dict):
        response = await client.patch(
            f"{API}/admin/products/{uuid4()}/status",
            json={"status": "approved"},
            headers=admin_headers,
        )

        assert response.status_code == 404


# ============================================================================
# TESTS: AUTH
# ============================================================================

class TestAuth:

    async def test_register_login_me(self, client: AsyncClient):
        credentials = {"email": "garage@example.com", "password": "Sp4rkPlugs"}

        registered = await client.post(f"{API}/auth/register", json={**credentials, "username": "garage"})
        assert registered.status_code == 201
        assert registered.json()["user"]["role"] == "seller"
        assert registered.json()["token"]["tokenType"] == "bearer"

        logged_in = await client.post(f"{API}/auth/login", json=credentials)
        assert logged_in.status_code == 200
        token = logged_in.json()["token"]["accessToken"]

        me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "garage@example.com"
        assert me.json()["role"] == "seller"

    async def test_wrong_password(self, client: AsyncClient):
        await client.post(
            f"{API}/auth/register",
            json={"email": "garage@example.com", "password": "Sp4rkPlugs", "username": "garage"},
        )

        response = await client.post(f"{API}/auth/login", json={"email": "garage@example.com", "password": "nope1234"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid email or password"}

    async def test_email_taken_in_other_case(self, client: AsyncClient):
        await client.post(
            f"{API}/auth/register",
            json={"email": "garage@example.com", "password": "Sp4rkPlugs", "username": "garage"},
        )

        response = await client.post(
            f"{API}/auth/register",
            json={"email": "Garage@Example.com", "password": "Sp4rkPlugs", "username": "garage2"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "email"

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"username": "ab"}, "username"),
            ({"username": "-garage"}, "username"),
            ({"password": "onlyletters"}, "password"),
            ({"password": "garage1234"}, "request"),
        ],
    )
    async def test_register_rules(self, client: AsyncClient, overrides, field):
        body = {"email": "garage@example.com", "password": "Sp4rkPlugs", "username": "garage", **overrides}

        response = await client.post(f"{API}/auth/register", json=body)

        assert response.status_code == 400
        assert field in response.json()["errors"]

    async def test_promotion_needs_fresh_login(
        self, client: AsyncClient, test_db: AsyncSession, seller: User, seller_headers: dict
    ):
        await AuthService(test_db).set_admin(seller.id, True)

        stale = await client.get(f"{API}/auth/me", headers=seller_headers)
        assert stale.status_code == 401

        fresh = {"Authorization": f"Bearer {issue_token(seller)}"}
        me = await client.get(f"{API}/auth/me", headers=fresh)
        assert me.json()["role"] == "admin"

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not.a.token"})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"


# ============================================================================
# TESTS: STORE FAILURES
# ============================================================================

class TestStoreFailure:

    @pytest.mark.parametrize("path", ["/categories", "/categories/count"])
    async def test_store_errors_are_opaque(self, client: AsyncClient, monkeypatch, path):
        async def broken(self, *args, **kwargs):
            raise OperationalError("SELECT boom", {}, Exception("boom: connection refused"))

        monkeypatch.setattr(CategoryService, "list_category_tree", broken)
        monkeypatch.setattr(CategoryService, "count_categories", broken)

        response = await client.get(f"{API}{path}")

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error", "error": "store_failure"}
        assert "boom" not in response.text
