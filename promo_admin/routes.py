######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Promo Admin Service

This service implements a REST API that allows you to bulk Create, Read,
Redeem and Delete Promo Codes, read their usage Statistics, and Create,
Read, Update, Delete and List multilingual Blog Posts
"""

# Third-party
from flask import Blueprint, abort, current_app as app, jsonify, request, url_for

# First-party
from promo_admin.common import status  # HTTP status codes
from promo_admin.models import BlogPost, DataValidationError, PromoCode, db
from promo_admin.services import STATS_EXTENSION, PromoCodeStatsService

api_bp = Blueprint("api", __name__)


def _parse_bool_strict(value: str):
    """
    Strictly parse query-string boolean.
    Accepted (case-insensitive, trimmed):
      True:  'true', '1', 'yes'
      False: 'false', '0', 'no'
    Others: return None (caller should raise 400)
    """
    v = str(value).strip().lower()
    if v in {"true", "1", "yes"}:
        return True
    if v in {"false", "0", "no"}:
        return False
    return None


def _bool_arg(name: str):
    """Returns the strictly parsed boolean query parameter, or None if absent"""
    raw = request.args.get(name)
    if raw is None:
        return None
    value = _parse_bool_strict(raw)
    if value is None:
        abort(
            status.HTTP_400_BAD_REQUEST,
            (
                f"Invalid value for query parameter '{name}'. "
                "Accepted: true, false, 1, 0, yes, no (case-insensitive). "
                f"Received: {raw!r}"
            ),
        )
    return value


def _str_arg(name: str):
    value = request.args.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def get_stats_service() -> PromoCodeStatsService:
    """Returns the statistics service wired into the current app"""
    return app.extensions[STATS_EXTENSION]


######################################################################
# Root endpoint
######################################################################
@api_bp.route("/", methods=["GET"])
def index():
    """Root URL response"""
    return (
        jsonify(
            name="Promo Admin Service",
            version="1.0.0",
            description="RESTful service for managing promo codes and blog posts",
            paths={
                "promo_codes": "/promo-codes",
                "used_codes": "/promo-codes/used",
                "stats": "/stats",
                "blog_posts": "/blog-posts",
            },
        ),
        status.HTTP_200_OK,
    )


######################################################################
# LIST Promo Codes with optional filters
#
# Supported query params (combined with AND):
# ?type=<str>     -> exact match
# ?region=<str>   -> exact match
# ?used=<bool>    -> true/false/1/0/yes/no (case-insensitive), invalid => 400
######################################################################
@api_bp.route("/promo-codes", methods=["GET"])
def list_promo_codes():
    """List Promo Codes, newest first"""
    app.logger.info("Request to list Promo Codes")

    code_type = _str_arg("type")
    region = _str_arg("region")
    is_used = _bool_arg("used")

    if code_type is None and region is None and is_used is None:
        codes = PromoCode.all()
    else:
        codes = PromoCode.find_filtered(code_type=code_type, region=region, is_used=is_used)

    return jsonify([c.serialize() for c in codes]), status.HTTP_200_OK


######################################################################
# LIST used Promo Codes
######################################################################
@api_bp.route("/promo-codes/used", methods=["GET"])
def list_used_codes():
    """List used Promo Codes, most recently redeemed first"""
    app.logger.info("Request to list used Promo Codes")
    codes = PromoCode.find_used(code_type=_str_arg("type"), region=_str_arg("region"))
    return jsonify([c.serialize() for c in codes]), status.HTTP_200_OK


######################################################################
# READ a Promo Code
######################################################################
@api_bp.route("/promo-codes/<int:code_id>", methods=["GET"])
def get_promo_codes(code_id: int):
    """
    Get a Promo Code by id
    """
    app.logger.info("Request to get Promo Code with id [%s]", code_id)
    code = _find_code_or_404(code_id)
    return jsonify(code.serialize()), status.HTTP_200_OK


######################################################################
# CREATE Promo Codes in bulk
######################################################################
@api_bp.route("/promo-codes", methods=["POST"])
def create_promo_codes():
    """
    Create a batch of Promo Codes

    Body: {"codes": [...] or "one\\nper\\nline", "type": ..., "region": ...}
    """
    app.logger.info("Request to Create Promo Codes")
    check_content_type("application/json")

    data = request.get_json()
    if not isinstance(data, dict):
        abort(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")
    for field in ("codes", "type", "region"):
        if field not in data:
            abort(status.HTTP_400_BAD_REQUEST, f"Invalid request: missing '{field}'")

    try:
        codes = PromoCode.bulk_create(data["codes"], data["type"], data["region"])
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    app.logger.info("Created %d Promo Codes", len(codes))
    return (
        jsonify(created=len(codes), codes=[c.serialize() for c in codes]),
        status.HTTP_201_CREATED,
        {"Location": url_for("api.list_promo_codes", _external=True)},
    )


######################################################################
# REDEEM a Promo Code (action)
######################################################################
@api_bp.route("/promo-codes/<int:code_id>/redeem", methods=["PUT"])
def redeem_promo_code(code_id: int):
    """
    Action: mark a Promo Code as used and stamp its redemption date.
    A code can be redeemed only once.
    """
    app.logger.info("Request to redeem Promo Code with id [%s]", code_id)
    code = _find_code_or_404(code_id)
    try:
        code.redeem()
    except DataValidationError as error:
        abort(status.HTTP_409_CONFLICT, str(error))
    return jsonify(code.serialize()), status.HTTP_200_OK


######################################################################
# DELETE a Promo Code
######################################################################
@api_bp.route("/promo-codes/<int:code_id>", methods=["DELETE"])
def delete_promo_codes(code_id: int):
    """
    Delete a Promo Code by id
    """
    app.logger.info("Request to delete Promo Code with id [%s]", code_id)
    code = _find_code_or_404(code_id)
    code.delete()
    return "", status.HTTP_204_NO_CONTENT


######################################################################
# Usage statistics
######################################################################
@api_bp.route("/stats", methods=["GET"])
def get_stats():
    """
    Recompute usage statistics from the current promo codes

    Returns raw numbers; formatting is left to the client.
    """
    app.logger.info("Request for Promo Code statistics")
    report = get_stats_service().refresh()
    return jsonify(report.serialize()), status.HTTP_200_OK


######################################################################
# LIST Blog Posts with optional filters
#
# ?category=<str>    -> exact match
# ?published=<bool>  -> true => published only, false => drafts only
######################################################################
@api_bp.route("/blog-posts", methods=["GET"])
def list_blog_posts():
    """List Blog Posts, most recently updated first"""
    app.logger.info("Request to list Blog Posts")

    category = _str_arg("category")
    published = _bool_arg("published")

    if category is None and published is None:
        posts = BlogPost.all()
    else:
        posts = BlogPost.find_filtered(category=category, published=published)

    return jsonify([p.serialize() for p in posts]), status.HTTP_200_OK


######################################################################
# READ a Blog Post
######################################################################
@api_bp.route("/blog-posts/<int:post_id>", methods=["GET"])
def get_blog_posts(post_id: int):
    """
    Get a Blog Post by id

    With ?lang=<code> only the title, content and excerpt in that language
    are returned.
    """
    app.logger.info("Request to get Blog Post with id [%s]", post_id)
    post = _find_post_or_404(post_id)

    lang = _str_arg("lang")
    if lang:
        try:
            return jsonify(post.localized(lang)), status.HTTP_200_OK
        except DataValidationError as error:
            abort(status.HTTP_400_BAD_REQUEST, str(error))
    return jsonify(post.serialize()), status.HTTP_200_OK


######################################################################
# CREATE a Blog Post
######################################################################
@api_bp.route("/blog-posts", methods=["POST"])
def create_blog_posts():
    """
    Create a Blog Post
    """
    app.logger.info("Request to Create a Blog Post")
    check_content_type("application/json")

    post = BlogPost()
    try:
        data = request.get_json()
        app.logger.info("Processing: %s", data)
        post.deserialize(data)
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    if BlogPost.find_by_slug(post.slug):
        abort(status.HTTP_409_CONFLICT, f"Blog post with slug '{post.slug}' already exists.")
    post.create()

    location_url = url_for("api.get_blog_posts", post_id=post.id, _external=True)
    return (
        jsonify(post.serialize()),
        status.HTTP_201_CREATED,
        {"Location": location_url},
    )


######################################################################
# UPDATE a Blog Post
######################################################################
@api_bp.route("/blog-posts/<int:post_id>", methods=["PUT"])
def update_blog_posts(post_id: int):
    """
    Update a Blog Post
    Only the fields present in the payload are changed
    """
    app.logger.info("Request to update Blog Post with id [%s]", post_id)
    check_content_type("application/json")

    post = _find_post_or_404(post_id)

    data = request.get_json()
    app.logger.info("Processing: %s", data)
    if isinstance(data, dict) and "id" in data and str(data["id"]) != str(post_id):
        abort(status.HTTP_400_BAD_REQUEST, "ID in body must match resource path")
    try:
        post.deserialize(data, partial=True)
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    # the pending slug change must not be flushed before the uniqueness check
    with db.session.no_autoflush:
        other = BlogPost.find_by_slug(post.slug)
    if other and other.id != post_id:
        abort(status.HTTP_409_CONFLICT, f"Blog post with slug '{post.slug}' already exists.")
    post.id = post_id
    post.update()

    return jsonify(post.serialize()), status.HTTP_200_OK


######################################################################
# DELETE a Blog Post
######################################################################
@api_bp.route("/blog-posts/<int:post_id>", methods=["DELETE"])
def delete_blog_posts(post_id: int):
    """
    Delete a Blog Post by id
    """
    app.logger.info("Request to delete Blog Post with id [%s]", post_id)
    post = _find_post_or_404(post_id)
    post.delete()
    return "", status.HTTP_204_NO_CONTENT


######################################################################
# Utility: lookups
######################################################################
def _find_code_or_404(code_id: int) -> PromoCode:
    code = PromoCode.find(code_id)
    if not code:
        abort(
            status.HTTP_404_NOT_FOUND,
            f"Promo code with id '{code_id}' was not found.",
        )
    return code


def _find_post_or_404(post_id: int) -> BlogPost:
    post = BlogPost.find(post_id)
    if not post:
        abort(
            status.HTTP_404_NOT_FOUND,
            f"Blog post with id '{post_id}' was not found.",
        )
    return post


######################################################################
# Utility: Content-Type guard
######################################################################
def check_content_type(content_type: str):
    """Checks that the media type is correct (tolerates charset etc.)"""
    if request.mimetype != content_type:
        got = request.content_type or "none"
        abort(
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            f"Content-Type must be {content_type}; received {got}",
        )


######################################################################
# Endpoint: /health (K8s liveness/readiness)
######################################################################
@api_bp.route("/health", methods=["GET"])
def health():
    """
    K8s health check endpoint
    Returns:
        JSON: {"status": "OK"} with HTTP 200
    """
    app.logger.info("Health check requested")
    return jsonify(status="OK"), status.HTTP_200_OK
