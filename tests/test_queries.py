from app.queries import (
    ReviewFilters,
    category_averages,
    filter_reviews,
    listing_names,
    listing_showcase,
    moderation_stats,
)
from app.schemas import CanonicalReview


def review(id, rating, submitted, listing="A", channel="airbnb", approved=False, featured=False, categories=None, **kw):
    return CanonicalReview(
        id=id,
        type="guest-to-host",
        status="published",
        overallRating=rating,
        comment=kw.get("comment", ""),
        categories=categories or {},
        submittedAt=submitted,
        guestName=kw.get("guestName", "Guest"),
        listingName=listing,
        channel=channel,
        approved=approved,
        featured=featured,
    )


REVIEWS = [
    review(1, 8, "2024-01-01 10:00:00", listing="A", approved=True, categories={"cleanliness": 8, "location": 6}),
    review(2, 4, "2024-03-01 10:00:00", listing="B", channel="vrbo", comment="Broken heating"),
    review(3, 10, "2024-02-01 10:00:00", listing="A", approved=True, featured=True, categories={"cleanliness": 10}),
    review(4, 6, "not a date", listing="A", featured=True),
]


def test_no_filters_keeps_source_order():
    assert [r.id for r in filter_reviews(REVIEWS, ReviewFilters())] == [1, 2, 3, 4]


def test_default_sort_is_newest_first_with_bad_dates_last():
    result = filter_reviews(REVIEWS, ReviewFilters(sort="date"))
    assert [r.id for r in result] == [2, 3, 1, 4]


def test_sort_by_rating():
    result = filter_reviews(REVIEWS, ReviewFilters(sort="rating"))
    assert [r.id for r in result] == [3, 1, 4, 2]


def test_combined_filters():
    result = filter_reviews(REVIEWS, ReviewFilters(listing="A", min_rating=7))
    assert [r.id for r in result] == [3, 1]
    assert [r.id for r in filter_reviews(REVIEWS, ReviewFilters(search="heating"))] == [2]
    assert [r.id for r in filter_reviews(REVIEWS, ReviewFilters(channel="vrbo"))] == [2]
    assert [r.id for r in filter_reviews(REVIEWS, ReviewFilters(featured=True, approved=False))] == [4]


def test_listing_names_first_seen_order():
    assert listing_names(REVIEWS) == ["A", "B"]
    assert listing_names([]) == []


def test_moderation_stats():
    stats = moderation_stats(REVIEWS)
    assert (stats.total, stats.approved, stats.featured) == (4, 2, 2)
    assert stats.averageRating == 7.0


def test_moderation_stats_empty():
    stats = moderation_stats([])
    assert (stats.total, stats.approved, stats.featured, stats.averageRating) == (0, 0, 0, 0.0)


def test_category_averages_only_over_reviews_rating_the_category():
    assert category_averages(REVIEWS) == {"cleanliness": 9.0, "location": 6.0}


def test_listing_showcase():
    showcase = listing_showcase(REVIEWS, "A")
    assert showcase.totalReviews == 3
    assert [r.id for r in showcase.approvedReviews] == [1, 3]
    # review 4 is featured but not approved
    assert [r.id for r in showcase.featuredReviews] == [3]
    assert showcase.approvalRate == 67
    assert showcase.averageRating == 9.0
    assert showcase.categoryAverages == {"cleanliness": 9.0, "location": 6.0}
