import io
import os
import re


def test_health_and_security_headers(client):
    response = client.get("/healthz", headers={"X-Request-ID": "test-request-0001"})
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"
    assert response.headers.get("X-Request-ID") == "test-request-0001"
    assert response.headers.get("X-Frame-Options") == "DENY"
    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"


def test_readiness_reports_seeded_state(client):
    response = client.get("/readyz")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "ready"
    assert all(payload["checks"].values())


def test_mutations_require_csrf_token(client):
    response = client.post("/api/newsletter", json={"email": "nocsrf@example.com"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "csrf_failed"

    response = client.post("/admin/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 400


def test_admin_requires_login(client):
    response = client.get("/admin/services")
    assert response.status_code == 401
    assert response.get_json()["error"] == "auth_error"
    assert response.headers.get("X-Robots-Tag") == "noindex, nofollow, noarchive"


def test_login_rejects_bad_credentials(client, csrf_headers):
    response = client.post("/admin/login", json={"username": "admin", "password": "wrong"}, headers=csrf_headers)
    assert response.status_code == 401
    response = client.post("/admin/login", json={"username": "ghost", "password": "admin123"}, headers=csrf_headers)
    assert response.status_code == 401
    assert client.get("/admin/dashboard").status_code == 401


def test_logout_ends_admin_session(client, admin_headers):
    assert client.get("/admin/dashboard").status_code == 200
    response = client.post("/admin/logout", headers=admin_headers)
    assert response.status_code == 200
    assert client.get("/admin/dashboard").status_code == 401


def test_admin_crud_flow(client, admin_headers):
    response = client.post(
        "/admin/services",
        json={"title": "Identité visuelle", "description": "Logos et chartes"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    service = response.get_json()
    assert service["gradient"]

    public = client.get("/api/services").get_json()
    assert [item["title"] for item in public] == ["Identité visuelle"]

    response = client.patch(f"/admin/services/{service['id']}", json={"details": "Sur mesure"}, headers=admin_headers)
    assert response.status_code == 200
    updated = response.get_json()
    assert updated["details"] == "Sur mesure"
    assert updated["description"] == "Logos et chartes"

    response = client.delete(f"/admin/services/{service['id']}", headers=admin_headers)
    assert response.status_code == 422
    assert response.get_json()["field"] == "confirm"

    response = client.delete(f"/admin/services/{service['id']}?confirm=1", headers=admin_headers)
    assert response.status_code == 200

    response = client.delete(f"/admin/services/{service['id']}?confirm=1", headers=admin_headers)
    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_validation_errors_name_the_field(client, admin_headers):
    response = client.post("/admin/services", json={"description": "No title"}, headers=admin_headers)
    assert response.status_code == 422
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert payload["field"] == "title"


def test_unknown_kinds_and_singletons_on_generic_routes_are_not_found(client, admin_headers):
    assert client.get("/admin/widgets").status_code == 404
    assert client.get("/admin/company-info").status_code == 404
    assert client.get("/admin/singletons/services").status_code == 404


def test_multipart_upload_is_stored_and_served(client, admin_headers, image_bytes):
    response = client.post(
        "/admin/projects",
        data={"title": "Refonte", "image": (io.BytesIO(image_bytes()), "cover.png", "image/png")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 201
    image_url = response.get_json()["image"]
    assert re.match(r"^/uploads/images/[0-9a-f]{32}\.png$", image_url)

    served = client.get(image_url)
    assert served.status_code == 200
    assert served.mimetype == "image/png"
    assert served.data == image_bytes()

    assert client.get("/uploads/images/missing.png").status_code == 404


def test_rejected_upload_returns_client_error_and_writes_nothing(client, admin_headers):
    response = client.post(
        "/admin/projects",
        data={"title": "Refonte", "image": (io.BytesIO(b"plain text"), "cover.png", "image/png")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "upload_error"
    assert payload["field"] == "image"
    assert client.get("/admin/projects").get_json() == []


def test_public_testimonial_needs_approval(client, admin_headers):
    response = client.post(
        "/api/testimonials",
        json={"quote": "Travail soigné", "name": "Inès", "approved": True},
        headers=admin_headers,
    )
    assert response.status_code == 201
    submitted = response.get_json()
    assert submitted["approved"] is False
    assert client.get("/api/testimonials").get_json() == []

    response = client.post(
        f"/admin/testimonials/{submitted['id']}/approval",
        json={"approved": True},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert [item["name"] for item in client.get("/api/testimonials").get_json()] == ["Inès"]

    response = client.post(
        f"/admin/testimonials/{submitted['id']}/approval",
        json={"approved": "maybe"},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_newsletter_duplicate_is_conflict(client, csrf_headers):
    response = client.post("/api/newsletter", json={"email": "Fan@Example.com"}, headers=csrf_headers)
    assert response.status_code == 201
    assert response.get_json()["email"] == "fan@example.com"

    response = client.post("/api/newsletter", json={"email": "fan@example.com"}, headers=csrf_headers)
    assert response.status_code == 409
    payload = response.get_json()
    assert payload["error"] == "conflict"
    assert payload["field"] == "email"


def test_blog_publication_flow(client, admin_headers):
    category = client.post("/admin/blog-categories", json={"name": "Branding"}, headers=admin_headers).get_json()
    post = client.post(
        "/admin/blog-posts",
        json={"title": "Bien choisir son logo", "content": "<p>Conseils</p>", "category_id": category["id"]},
        headers=admin_headers,
    ).get_json()
    assert post["slug"] == "bien-choisir-son-logo"
    assert post["published_at"] is None

    assert client.get("/api/blog/bien-choisir-son-logo").status_code == 404
    assert client.get("/api/blog").get_json() == []

    response = client.post(f"/admin/blog-posts/{post['id']}/publish", headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["published_at"]

    listing = client.get("/api/blog?category=branding").get_json()
    assert [item["slug"] for item in listing] == ["bien-choisir-son-logo"]
    assert listing[0]["category"]["name"] == "Branding"

    response = client.post(
        "/api/blog/bien-choisir-son-logo/comments",
        json={"author_name": "Paul", "content": "Merci !"},
        headers=admin_headers,
    )
    assert response.status_code == 201

    detail = client.get("/api/blog/bien-choisir-son-logo").get_json()
    assert [comment["author_name"] for comment in detail["comments"]] == ["Paul"]

    response = client.delete(f"/admin/blog-categories/{category['id']}?confirm=1", headers=admin_headers)
    assert response.status_code == 409

    client.post(f"/admin/blog-posts/{post['id']}/unpublish", headers=admin_headers)
    assert client.get("/api/blog/bien-choisir-son-logo").status_code == 404


def test_service_detail_includes_matching_pricing(client, admin_headers):
    service = client.post(
        "/admin/services",
        json={"title": "Web Design", "description": "Sites vitrines"},
        headers=admin_headers,
    ).get_json()
    client.post(
        "/admin/pricing-plans",
        json={"title": "Essentiel", "price": "500", "category": "Web Design", "features": ["3 pages", ""]},
        headers=admin_headers,
    )

    detail = client.get(f"/api/services/{service['id']}").get_json()
    assert [plan["title"] for plan in detail["pricing_plans"]] == ["Essentiel"]
    assert detail["pricing_plans"][0]["features"] == ["3 pages"]

    pricing = client.get("/api/pricing").get_json()
    assert pricing["categories"] == ["Web Design"]
    assert client.get("/api/services/9999").status_code == 404


def test_faq_endpoint_filters(client, admin_headers):
    client.post("/admin/faqs", json={"question": "Délais ?", "answer": "Deux semaines", "category": "Projet"}, headers=admin_headers)
    client.post("/admin/faqs", json={"question": "Prix ?", "answer": "Sur devis", "category": "Tarifs"}, headers=admin_headers)

    assert len(client.get("/api/faq").get_json()) == 2
    assert [item["question"] for item in client.get("/api/faq?category=Tarifs").get_json()] == ["Prix ?"]
    assert [item["question"] for item in client.get("/api/faq?q=SEMAINES").get_json()] == ["Délais ?"]


def test_subscriber_export_csv(client, admin_headers):
    client.post("/api/newsletter", json={"email": "reader@example.com", "name": "Reader"}, headers=admin_headers)
    response = client.get("/admin/newsletter-subscribers/export.csv")
    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    disposition = response.headers.get("Content-Disposition", "")
    assert re.search(r'filename="newsletter_subscribers_\d{4}-\d{2}-\d{2}\.csv"', disposition)
    lines = response.get_data(as_text=True).split("\n")
    assert lines[0] == "Email,Nom,Date,Statut,Source"
    assert lines[1].startswith("reader@example.com,Reader,")
    assert lines[1].endswith(",Actif,website_contact")


def test_subscriber_status_toggle(client, admin_headers):
    subscriber = client.post("/api/newsletter", json={"email": "toggle@example.com"}, headers=admin_headers).get_json()
    response = client.post(
        f"/admin/newsletter-subscribers/{subscriber['id']}/status",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.get_json()["is_active"] is False

    stats = client.get("/admin/dashboard").get_json()["subscribers"]
    assert stats["total"] == 1
    assert stats["active"] == 0


def test_singleton_endpoints(client, admin_headers):
    response = client.get("/admin/singletons/company-info")
    assert response.status_code == 200
    assert response.get_json()["name"] == "JAWA"

    response = client.put(
        "/admin/singletons/company-info",
        json={"phone": "+33 1 02 03 04 05", "email": "contact@jawa.fr"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    company = client.get("/api/company").get_json()
    assert company["phone"] == "+33 1 02 03 04 05"
    assert company["name"] == "JAWA"
    assert client.get("/api/about").status_code == 200


def test_svg_upload_is_rejected_and_nothing_is_served(client, admin_headers, app):
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" onload="fetch(\'/admin/dashboard\')"></svg>'
    response = client.post(
        "/admin/projects",
        data={"title": "Vecteur", "image": (io.BytesIO(svg), "logo.svg", "image/svg+xml")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 400
    assert response.get_json()["field"] == "image"
    assert client.get("/admin/projects").get_json() == []
    images = os.path.join(app.config["UPLOAD_FOLDER"], "images")
    assert not os.path.isdir(images) or os.listdir(images) == []


def test_admin_comment_listing_names_the_article(client, admin_headers):
    post = client.post(
        "/admin/blog-posts",
        json={"title": "Refonte du site", "content": "Avant, après", "is_published": True},
        headers=admin_headers,
    ).get_json()
    client.post(
        "/api/blog/refonte-du-site/comments",
        json={"author_name": "Lina", "content": "Superbe"},
        headers=admin_headers,
    )

    comments = client.get("/admin/blog-comments").get_json()
    assert [comment["author_name"] for comment in comments] == ["Lina"]
    assert comments[0]["post"] == {"id": post["id"], "title": "Refonte du site", "slug": "refonte-du-site"}

    detail = client.get(f"/admin/blog-comments/{comments[0]['id']}").get_json()
    assert detail["post"]["slug"] == "refonte-du-site"


def test_blog_all_sentinel_lists_every_post(client, admin_headers):
    client.post("/admin/blog-posts", json={"title": "Un", "content": "a", "is_published": True}, headers=admin_headers)
    client.post("/admin/blog-posts", json={"title": "Deux", "content": "b", "is_published": True}, headers=admin_headers)
    assert len(client.get("/api/blog?category=All").get_json()) == 2
