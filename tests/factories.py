"""
Test Factory to make fake objects for testing
"""

import factory
from promo_admin.models import BlogPost, PromoCode
from promo_admin.stats import CodeRecord, CodeType, Region


class PromoCodeFactory(factory.Factory):
    """Creates fake promo codes for testing"""

    class Meta:  # pylint: disable=too-few-public-methods
        """Maps factory to data model"""

        model = PromoCode

    id = factory.Sequence(lambda n: n + 1)
    code = factory.Sequence(lambda n: f"PROMO{n:05d}")
    type = factory.Faker("random_element", elements=CodeType.values())
    region = factory.Faker("random_element", elements=Region.values())
    is_used = False
    redeem_date = None


class BlogPostFactory(factory.Factory):
    """Creates fake blog posts for testing"""

    class Meta:  # pylint: disable=too-few-public-methods
        """Maps factory to data model"""

        model = BlogPost

    id = factory.Sequence(lambda n: n + 1)
    slug = factory.Sequence(lambda n: f"post-{n}")
    title_en = factory.Faker("sentence", nb_words=4)
    title_fr = ""
    title_es = ""
    title_pt = ""
    title_de = ""
    title_ja = ""
    title_hi = ""
    title_ru = ""
    content_en = factory.Faker("paragraph")
    excerpt_en = factory.Faker("sentence")
    author = factory.Faker("name")
    category = factory.Faker("random_element", elements=("news", "guides", "releases"))
    tags = "promo,launch"
    featured_image = ""
    published = False
    featured = False


class CodeRecordFactory(factory.Factory):
    """Creates code records for the statistics aggregator"""

    class Meta:  # pylint: disable=too-few-public-methods
        """Maps factory to the record type"""

        model = CodeRecord

    type = factory.Faker("random_element", elements=CodeType.values())
    region = factory.Faker("random_element", elements=Region.values())
    used = factory.Faker("pybool")
