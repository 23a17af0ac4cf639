"""
Blog Post API Service Test Suite
"""

import os
import logging
from unittest import TestCase

from promo_admin import create_app
from promo_admin.common import status
from promo_admin.models import BlogPost, db

DATABASE_URI = os.getenv("DATABASE_URI", "sqlite:///:memory:")
BASE_URL = "/blog-posts"

app = create_app({"SQLALCHEMY_DATABASE_URI": DATABASE_URI, "TESTING": True})


def make_payload(**overrides) -> dict:
    """Build a valid blog post JSON payload"""
    base = {
        "slug": "summer-sale",
        "title_en": "Summer Sale",
        "title_es": "Rebajas de verano",
        "content_en": "Codes for everyone.",
        "excerpt_en": "Codes",
        "author": "Marketing",
        "category": "news",
        "tags": "sale,summer",
        "published": False,
        "featured": False,
    }
    base.update(overrides)
    return base


class TestBlogPostService(TestCase):
    """Blog Post REST API Tests"""

    @classmethod
    def setUpClass(cls):
        """Run once before all tests"""
        app.logger.setLevel(logging.CRITICAL)
        cls.ctx = app.app_context()
        cls.ctx.push()

    @classmethod
    def tearDownClass(cls):
        """Run once after all tests"""
        db.session.close()
        cls.ctx.pop()

    def setUp(self):
        """Runs before each test"""
        self.client = app.test_client()
        BlogPost.remove_all()

    def tearDown(self):
        """Runs after each test"""
        db.session.remove()

    def _create(self, **overrides) -> dict:
        resp = self.client.post(BASE_URL, json=make_payload(**overrides))
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        return resp.get_json()

    def test_create_blog_post(self):
        """It should Create a Blog Post"""
        resp = self.client.post(BASE_URL, json=make_payload())
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        location = resp.headers.get("Location")
        self.assertIsNotNone(location)
        body = resp.get_json()
        self.assertEqual(body["slug"], "summer-sale")
        self.assertEqual(body["title_es"], "Rebajas de verano")
        self.assertEqual(body["title_ja"], "")

        follow = self.client.get(location)
        self.assertEqual(follow.status_code, status.HTTP_200_OK)
        self.assertEqual(follow.get_json()["title_en"], "Summer Sale")

    def test_create_generates_slug(self):
        """It should derive the slug from the English title"""
        body = self._create(slug="", title_en="Winter Deals 2025")
        self.assertEqual(body["slug"], "winter-deals-2025")

    def test_create_missing_title(self):
        """It should require the English title"""
        resp = self.client.post(BASE_URL, json=make_payload(title_en=""))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("title_en", resp.get_json()["message"])

    def test_create_duplicate_slug(self):
        """It should refuse a second post with the same slug"""
        self._create()
        resp = self.client.post(BASE_URL, json=make_payload(title_en="Other"))
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_create_wrong_content_type(self):
        """It should reject a non JSON body with 415"""
        resp = self.client.post(BASE_URL, data="hello", content_type="text/html")
        self.assertEqual(resp.status_code, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)

    def test_list_and_filter(self):
        """It should list posts and filter by category and published flag"""
        self._create(slug="a", category="news", published=True)
        self._create(slug="b", category="news", published=False)
        self._create(slug="c", category="guides", published=True)

        resp = self.client.get(BASE_URL)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.get_json()), 3)

        resp = self.client.get(BASE_URL, query_string={"category": "news", "published": "false"})
        self.assertEqual([p["slug"] for p in resp.get_json()], ["b"])

        resp = self.client.get(BASE_URL, query_string={"published": "1"})
        self.assertEqual({p["slug"] for p in resp.get_json()}, {"a", "c"})

        resp = self.client.get(BASE_URL, query_string={"published": "draft"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_localized(self):
        """It should return a single language view"""
        post = self._create()
        resp = self.client.get(f"{BASE_URL}/{post['id']}", query_string={"lang": "es"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.get_json()
        self.assertEqual(data["title"], "Rebajas de verano")
        self.assertEqual(data["content"], "Codes for everyone.")

        resp = self.client.get(f"{BASE_URL}/{post['id']}", query_string={"lang": "xx"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_not_found(self):
        """It should return 404 for an unknown post"""
        resp = self.client.get(f"{BASE_URL}/0")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_blog_post(self):
        """It should Update only the supplied fields"""
        post = self._create()
        resp = self.client.put(
            f"{BASE_URL}/{post['id']}", json={"published": True, "title_pt": "Promoção de verão"}
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.get_json()
        self.assertTrue(data["published"])
        self.assertEqual(data["title_pt"], "Promoção de verão")
        self.assertEqual(data["title_es"], "Rebajas de verano")
        self.assertEqual(data["slug"], "summer-sale")

    def test_update_bad_requests(self):
        """It should reject bad updates"""
        post = self._create()
        url = f"{BASE_URL}/{post['id']}"
        self.assertEqual(self.client.put(url, json={"featured": "yes"}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.put(url, json={"id": post["id"] + 1}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.put(url, json={"title_en": ""}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            self.client.put(url, data="x", content_type="text/plain").status_code,
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        )

    def test_update_slug_conflict(self):
        """It should refuse to rename a post onto another post's slug"""
        self._create(slug="taken")
        post = self._create(slug="mine")
        resp = self.client.put(f"{BASE_URL}/{post['id']}", json={"slug": "taken"})
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_update_not_found(self):
        """It should return 404 updating an unknown post"""
        resp = self.client.put(f"{BASE_URL}/999999", json={"published": True})
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_blog_post(self):
        """It should Delete a Blog Post"""
        post = self._create()
        resp = self.client.delete(f"{BASE_URL}/{post['id']}")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(f"{BASE_URL}/{post['id']}").status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.delete(f"{BASE_URL}/{post['id']}").status_code, status.HTTP_404_NOT_FOUND)
