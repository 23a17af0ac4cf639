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
Models for Promo Codes and Blog Posts

Query contract: single-item lookups (find, find_by_code, find_by_slug)
return object|None; multi-item lookups return a list.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from promo_admin.stats import CodeRecord, CodeType, Region

logger = logging.getLogger("flask.app")

# SQLAlchemy handle; bound to an app in create_app()
db = SQLAlchemy()

SUPPORTED_LANGUAGES = ("en", "fr", "es", "pt", "de", "ja", "hi", "ru")
LOCALIZED_FIELDS = ("title", "content", "excerpt")


class DataValidationError(Exception):
    """Used for data validation errors when deserializing or updating."""


class DatabaseError(Exception):
    """Used for database operation failures (commit/connection/constraint errors)."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _commit(record, action: str):
    """Commits the session, rolling back and raising DatabaseError on failure"""
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("Error %s record: %s", action, record)
        raise DatabaseError(e) from e


def parse_codes(raw: Union[str, Iterable[str]]) -> List[str]:
    """
    Normalizes a batch of promo codes

    Accepts newline separated text or a list of strings. Each code is
    trimmed and blank lines are dropped; the original order is kept.
    """
    if isinstance(raw, str):
        lines = raw.splitlines()
    elif isinstance(raw, (list, tuple)):
        lines = list(raw)
    else:
        raise DataValidationError("Field 'codes' must be a list of strings or newline separated text")

    codes = []
    for line in lines:
        if not isinstance(line, str):
            raise DataValidationError("Field 'codes' must contain only strings")
        line = line.strip()
        if line:
            codes.append(line)
    return codes


def generate_slug(title: str) -> str:
    """Builds a URL slug from a title"""
    slug = title.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    return re.sub(r"-+", "-", slug)


def _check_type(value) -> str:
    if value not in CodeType.values():
        raise DataValidationError(
            f"Invalid type {value!r}; expected one of: {', '.join(CodeType.values())}"
        )
    return value


def _check_region(value) -> str:
    if value not in Region.values():
        raise DataValidationError(
            f"Invalid region {value!r}; expected one of: {', '.join(Region.values())}"
        )
    return value


class PromoCode(db.Model):
    """
    Class that represents a Promo Code
    """

    ##################################################
    # Table Schema
    ##################################################
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False, unique=True)
    type = db.Column(db.String(32), nullable=False)
    region = db.Column(db.String(32), nullable=False)
    is_used = db.Column(db.Boolean, nullable=False, default=False)
    redeem_date = db.Column(db.DateTime, nullable=True)
    # Auditing fields
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    ##################################################
    # INSTANCE METHODS
    ##################################################

    def __repr__(self):
        return f"<PromoCode {self.code} id=[{self.id}]>"

    def create(self):
        """Creates this PromoCode in the database."""
        logger.info("Creating %s", self.code)
        self.id = None  # make sure id is None so SQLAlchemy will assign one
        try:
            db.session.add(self)
            db.session.flush()
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error("Error creating record: %s", self)
            raise DatabaseError(e) from e

    def update(self):
        """Updates this PromoCode in the database."""
        logger.info("Saving %s", self.code)
        if not self.id:
            raise DataValidationError("Field 'id' is required for update")
        _commit(self, "updating")

    def delete(self):
        """Removes this PromoCode from the data store."""
        logger.info("Deleting %s", self.code)
        db.session.delete(self)
        _commit(self, "deleting")

    def redeem(self):
        """
        Marks this PromoCode as used and stamps the redemption time.

        The check and the change are one conditional UPDATE, so of several
        concurrent redemptions of the same code exactly one succeeds.
        """
        code = self.code
        logger.info("Redeeming %s", code)
        if not self.id:
            raise DataValidationError("Field 'id' is required for redeem")
        try:
            redeemed = PromoCode.query.filter_by(id=self.id, is_used=False).update(
                {"is_used": True, "redeem_date": _utcnow()}, synchronize_session="fetch"
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Error redeeming record: %s", code)
            raise DatabaseError(e) from e
        if not redeemed:
            raise DataValidationError(f"Promo code '{code}' has already been used")

    def serialize(self) -> dict:
        """Serializes a PromoCode into a dictionary."""
        return {
            "id": self.id,
            "code": self.code,
            "type": self.type,
            "region": self.region,
            "is_used": bool(self.is_used),
            "redeem_date": self.redeem_date.isoformat() if self.redeem_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def deserialize(self, data: dict):
        """
        Deserializes a PromoCode from a dictionary.

        Args:
            data (dict): a dictionary containing the promo code data
        """
        try:
            code = data["code"]
            if not isinstance(code, str) or not code.strip():
                raise DataValidationError("Field 'code' must be a non-empty string")
            self.code = code.strip()
            self.type = _check_type(data["type"])
            self.region = _check_region(data["region"])

            is_used = data.get("is_used", False)
            if not isinstance(is_used, bool):
                raise DataValidationError("Field 'is_used' must be a boolean")
            self.is_used = is_used
        except AttributeError as error:
            raise DataValidationError("Invalid attribute: " + error.args[0]) from error
        except KeyError as error:
            raise DataValidationError(f"Invalid promo code: missing '{error.args[0]}'") from error
        except TypeError as error:
            raise DataValidationError(
                "Invalid promo code: request body contained malformed or invalid data"
            ) from error

        return self

    ##################################################
    # CLASS METHODS
    ##################################################

    @classmethod
    def bulk_create(cls, codes: Union[str, Iterable[str]], code_type: str, region: str) -> List["PromoCode"]:
        """
        Creates a batch of unused PromoCodes sharing one type and region

        All codes are inserted in a single transaction: either every code is
        stored or none is.
        """
        _check_type(code_type)
        _check_region(region)
        batch = parse_codes(codes)
        if not batch:
            raise DataValidationError("At least one promo code is required")

        seen = set()
        repeated = []
        for code in batch:
            if code in seen and code not in repeated:
                repeated.append(code)
            seen.add(code)
        if repeated:
            raise DataValidationError(f"Duplicate codes in request: {', '.join(repeated)}")

        existing = [row.code for row in cls.query.filter(cls.code.in_(batch)).all()]
        if existing:
            raise DataValidationError(f"Codes already exist: {', '.join(sorted(existing))}")

        logger.info("Creating %d promo codes of type %s for region %s", len(batch), code_type, region)
        rows = [cls(code=code, type=code_type, region=region, is_used=False) for code in batch]
        try:
            db.session.add_all(rows)
            db.session.flush()
            db.session.commit()
        except IntegrityError as e:
            # another import stored one of these codes after the check above
            db.session.rollback()
            logger.warning("Unique code conflict creating %d promo codes: %s", len(rows), e)
            raise DataValidationError(f"One or more codes already exist: {', '.join(batch)}") from e
        except Exception as e:
            db.session.rollback()
            logger.error("Error creating %d promo codes", len(rows))
            raise DatabaseError(e) from e
        return rows

    @classmethod
    def all(cls) -> List["PromoCode"]:
        """Returns all PromoCodes, newest first."""
        logger.info("Processing all PromoCodes")
        return list(cls.query.order_by(cls.created_at.desc(), cls.id.desc()).all())

    @classmethod
    def find(cls, by_id: Union[int, str]) -> Optional["PromoCode"]:
        """Finds a PromoCode by its ID (single object or None)."""
        logger.info("Processing lookup for id %s ...", by_id)
        try:
            pid = int(by_id)
        except (TypeError, ValueError):
            return None
        return cls.query.session.get(cls, pid)

    @classmethod
    def find_by_code(cls, code: str) -> Optional["PromoCode"]:
        """Finds a PromoCode by its code string (single object or None)."""
        logger.info("Processing code query for %s ...", code)
        return cls.query.filter(cls.code == code).first()

    @classmethod
    def find_filtered(
        cls,
        code_type: Optional[str] = None,
        region: Optional[str] = None,
        is_used: Optional[bool] = None,
    ) -> List["PromoCode"]:
        """Returns the PromoCodes matching every filter given, newest first."""
        logger.info(
            "Processing filtered query type=%s region=%s is_used=%s ...", code_type, region, is_used
        )
        query = cls.query
        if code_type is not None:
            query = query.filter(cls.type == code_type)
        if region is not None:
            query = query.filter(cls.region == region)
        if is_used is not None:
            query = query.filter(cls.is_used == is_used)
        return list(query.order_by(cls.created_at.desc(), cls.id.desc()).all())

    @classmethod
    def find_used(cls, code_type: Optional[str] = None, region: Optional[str] = None) -> List["PromoCode"]:
        """
        Returns used PromoCodes, most recently redeemed first

        Codes without a redemption date come last; ties are broken by id.
        """
        logger.info("Processing used codes query type=%s region=%s ...", code_type, region)
        query = cls.query.filter(cls.is_used.is_(True))
        if code_type is not None:
            query = query.filter(cls.type == code_type)
        if region is not None:
            query = query.filter(cls.region == region)
        return list(
            query.order_by(cls.redeem_date.is_(None), cls.redeem_date.desc(), cls.id.asc()).all()
        )

    @classmethod
    def stats_records(cls) -> List[CodeRecord]:
        """Fetches the (type, region, used) slice of every PromoCode."""
        logger.info("Fetching promo code records for statistics")
        try:
            rows = db.session.query(cls.type, cls.region, cls.is_used).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Error fetching promo code records: %s", e)
            raise DatabaseError(e) from e
        return [CodeRecord(type=row.type, region=row.region, used=bool(row.is_used)) for row in rows]

    @classmethod
    def remove_all(cls):
        """Removes all PromoCodes from the database."""
        logger.info("Removing all PromoCodes")
        cls.query.delete()
        db.session.commit()


class BlogPost(db.Model):
    """
    Class that represents a multilingual Blog Post
    """

    ##################################################
    # Table Schema
    ##################################################
    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(255), nullable=False, unique=True)

    title_en = db.Column(db.String(255), nullable=False)
    title_fr = db.Column(db.String(255), nullable=False, default="")
    title_es = db.Column(db.String(255), nullable=False, default="")
    title_pt = db.Column(db.String(255), nullable=False, default="")
    title_de = db.Column(db.String(255), nullable=False, default="")
    title_ja = db.Column(db.String(255), nullable=False, default="")
    title_hi = db.Column(db.String(255), nullable=False, default="")
    title_ru = db.Column(db.String(255), nullable=False, default="")

    content_en = db.Column(db.Text, nullable=False, default="")
    content_fr = db.Column(db.Text, nullable=False, default="")
    content_es = db.Column(db.Text, nullable=False, default="")
    content_pt = db.Column(db.Text, nullable=False, default="")
    content_de = db.Column(db.Text, nullable=False, default="")
    content_ja = db.Column(db.Text, nullable=False, default="")
    content_hi = db.Column(db.Text, nullable=False, default="")
    content_ru = db.Column(db.Text, nullable=False, default="")

    excerpt_en = db.Column(db.Text, nullable=False, default="")
    excerpt_fr = db.Column(db.Text, nullable=False, default="")
    excerpt_es = db.Column(db.Text, nullable=False, default="")
    excerpt_pt = db.Column(db.Text, nullable=False, default="")
    excerpt_de = db.Column(db.Text, nullable=False, default="")
    excerpt_ja = db.Column(db.Text, nullable=False, default="")
    excerpt_hi = db.Column(db.Text, nullable=False, default="")
    excerpt_ru = db.Column(db.Text, nullable=False, default="")

    author = db.Column(db.String(255), nullable=False, default="")
    featured_image = db.Column(db.String(1024), nullable=False, default="")
    category = db.Column(db.String(255), nullable=False, default="")
    tags = db.Column(db.String(1024), nullable=False, default="")
    published = db.Column(db.Boolean, nullable=False, default=False)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    # Auditing fields
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    updated_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    TEXT_FIELDS = tuple(
        f"{field}_{lang}" for field in LOCALIZED_FIELDS for lang in SUPPORTED_LANGUAGES
    ) + ("author", "featured_image", "category", "tags")
    BOOL_FIELDS = ("published", "featured")

    ##################################################
    # INSTANCE METHODS
    ##################################################

    def __repr__(self):
        return f"<BlogPost {self.slug} id=[{self.id}]>"

    def create(self):
        """Creates this BlogPost in the database."""
        logger.info("Creating %s", self.slug)
        self.id = None
        try:
            db.session.add(self)
            db.session.flush()
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error("Error creating record: %s", self)
            raise DatabaseError(e) from e

    def update(self):
        """Updates this BlogPost in the database."""
        logger.info("Saving %s", self.slug)
        if not self.id:
            raise DataValidationError("Field 'id' is required for update")
        self.updated_at = _utcnow()
        _commit(self, "updating")

    def delete(self):
        """Removes this BlogPost from the data store."""
        logger.info("Deleting %s", self.slug)
        db.session.delete(self)
        _commit(self, "deleting")

    def localized(self, lang: str) -> dict:
        """
        Returns the title, content and excerpt in the given language

        Blank translations fall back to the English text.
        """
        if lang not in SUPPORTED_LANGUAGES:
            raise DataValidationError(
                f"Unsupported language {lang!r}; expected one of: {', '.join(SUPPORTED_LANGUAGES)}"
            )
        view = {"id": self.id, "slug": self.slug, "lang": lang}
        for field in LOCALIZED_FIELDS:
            view[field] = getattr(self, f"{field}_{lang}") or getattr(self, f"{field}_en") or ""
        return view

    def serialize(self) -> dict:
        """Serializes a BlogPost into a dictionary."""
        data = {"id": self.id, "slug": self.slug}
        for name in self.TEXT_FIELDS:
            data[name] = getattr(self, name) or ""
        for name in self.BOOL_FIELDS:
            data[name] = bool(getattr(self, name))
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        data["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return data

    def deserialize(self, data: dict, partial: bool = False):
        """
        Deserializes a BlogPost from a dictionary.

        Args:
            data (dict): a dictionary containing the blog post data
            partial (bool): only touch the fields present in data
        """
        if not isinstance(data, dict):
            raise DataValidationError(
                "Invalid blog post: request body contained malformed or invalid data"
            )

        for name in self.TEXT_FIELDS + ("title_en", "slug"):
            if name in data and not isinstance(data[name], str):
                raise DataValidationError(f"Field '{name}' must be a string")
        for name in self.BOOL_FIELDS:
            if name in data and not isinstance(data[name], bool):
                raise DataValidationError(f"Field '{name}' must be a boolean")

        if not partial:
            title = data.get("title_en", "").strip()
            if not title:
                raise DataValidationError("Invalid blog post: missing 'title_en'")
            slug = data.get("slug", "").strip() or generate_slug(title)
            if not slug:
                raise DataValidationError("Invalid blog post: missing 'slug'")
            self.title_en = title
            self.slug = slug
            for name in self.TEXT_FIELDS:
                if name != "title_en":
                    setattr(self, name, data.get(name, ""))
            for name in self.BOOL_FIELDS:
                setattr(self, name, data.get(name, False))
            return self

        if "title_en" in data:
            if not data["title_en"].strip():
                raise DataValidationError("Field 'title_en' must not be blank")
            self.title_en = data["title_en"].strip()
        if "slug" in data:
            if not data["slug"].strip():
                raise DataValidationError("Field 'slug' must not be blank")
            self.slug = data["slug"].strip()
        for name in self.TEXT_FIELDS + self.BOOL_FIELDS:
            if name in data and name != "title_en":
                setattr(self, name, data[name])
        return self

    ##################################################
    # CLASS METHODS
    ##################################################

    @classmethod
    def all(cls) -> List["BlogPost"]:
        """Returns all BlogPosts, most recently updated first."""
        logger.info("Processing all BlogPosts")
        return list(cls.query.order_by(cls.updated_at.desc(), cls.id.desc()).all())

    @classmethod
    def find(cls, by_id: Union[int, str]) -> Optional["BlogPost"]:
        """Finds a BlogPost by its ID (single object or None)."""
        logger.info("Processing lookup for id %s ...", by_id)
        try:
            pid = int(by_id)
        except (TypeError, ValueError):
            return None
        return cls.query.session.get(cls, pid)

    @classmethod
    def find_by_slug(cls, slug: str) -> Optional["BlogPost"]:
        """Finds a BlogPost by its slug (single object or None)."""
        logger.info("Processing slug query for %s ...", slug)
        return cls.query.filter(cls.slug == slug).first()

    @classmethod
    def find_filtered(cls, category: Optional[str] = None, published: Optional[bool] = None) -> List["BlogPost"]:
        """Returns the BlogPosts matching every filter given, most recently updated first."""
        logger.info("Processing filtered query category=%s published=%s ...", category, published)
        query = cls.query
        if category is not None:
            query = query.filter(cls.category == category)
        if published is not None:
            query = query.filter(cls.published == published)
        return list(query.order_by(cls.updated_at.desc(), cls.id.desc()).all())

    @classmethod
    def remove_all(cls):
        """Removes all BlogPosts from the database."""
        logger.info("Removing all BlogPosts")
        cls.query.delete()
        db.session.commit()
