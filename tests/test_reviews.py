"""
Tests for Reviews

Tests the review endpoints:
- List reviews for a book
- Create a review (authenticated)
- Get a single review
- Update a review (owner only)
- Delete a review (owner only)
- Get book rating statistics

Business Rules:
- One review per user per book
- Only the review author can update or delete
- The book's average_rating/num_reviews follow every change
"""

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from book_reviews.models import Book, Review, User
from book_reviews.services.security import create_access_token


# =============================================================================
# Helper Functions
# =============================================================================


def get_auth_header(user: User) -> dict:
    """Create authorization header for a user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def get_book_json(client: TestClient, book_id: int) -> dict:
    response = client.get(f"/api/v1/books/{book_id}")
    assert response.status_code == status.HTTP_200_OK
    return response.json()


# =============================================================================
# List Reviews for Book
# =============================================================================


class TestListBookReviews:
    """Tests for GET /api/v1/books/{book_id}/reviews"""

    def test_list_reviews_empty(self, client: TestClient, sample_book: Book):
        """A book with no reviews returns an empty list."""
        response = client.get(f"/api/v1/books/{sample_book.id}/reviews")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

    def test_list_reviews_with_data(
        self, client: TestClient, sample_review: Review
    ):
        """Reviews come back with the reviewer and the book embedded."""
        response = client.get(f"/api/v1/books/{sample_review.book_id}/reviews")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data) == 1

        review = data[0]
        assert review["rating"] == 4
        assert review["comment"] == "Great world building."
        assert review["user"]["username"] == "testuser"
        assert review["book"]["title"] == "Dune"
        assert "email" not in review["user"]

    def test_list_reviews_book_not_found(self, client: TestClient):
        response = client.get("/api/v1/books/99999/reviews")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "not_found"

    def test_list_reviews_invalid_book_id(self, client: TestClient):
        response = client.get("/api/v1/books/not-an-id/reviews")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "error": "invalid_identifier",
            "detail": "Invalid Book ID",
        }


# =============================================================================
# Create Review
# =============================================================================


class TestCreateReview:
    """Tests for POST /api/v1/books/{book_id}/reviews"""

    def test_create_review_success(
        self,
        client: TestClient,
        sample_book: Book,
        second_user: User,
    ):
        """Creating a review returns it and updates the book's aggregates."""
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 5, "comment": "A masterpiece."},
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["rating"] == 5
        assert data["comment"] == "A masterpiece."
        assert data["book_id"] == sample_book.id
        assert data["user_id"] == second_user.id

        book = get_book_json(client, sample_book.id)
        assert book["average_rating"] == 5.0
        assert book["num_reviews"] == 1

    def test_create_review_rating_only(
        self,
        client: TestClient,
        sample_book: Book,
        sample_user: User,
    ):
        """The comment is optional."""
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 3},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["comment"] is None

    def test_create_review_duplicate(
        self,
        client: TestClient,
        sample_review: Review,
        sample_user: User,
    ):
        """A second review of the same book is a conflict; the count stays at 1."""
        book_id = sample_review.book_id

        response = client.post(
            f"/api/v1/books/{book_id}/reviews",
            json={"rating": 1},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {
            "error": "conflict",
            "detail": "You have already reviewed this book",
        }

        book = get_book_json(client, book_id)
        assert book["num_reviews"] == 1
        assert book["average_rating"] == 4.0

    def test_create_review_unauthenticated(
        self, client: TestClient, sample_book: Book
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 5},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "unauthenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_create_review_invalid_token(
        self, client: TestClient, sample_book: Book
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 5},
            headers={"Authorization": "Bearer not-a-real-token"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_review_book_not_found(
        self, client: TestClient, sample_user: User
    ):
        response = client.post(
            "/api/v1/books/99999/reviews",
            json={"rating": 5},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_create_review_invalid_book_id(
        self, client: TestClient, sample_user: User
    ):
        response = client.post(
            "/api/v1/books/abc/reviews",
            json={"rating": 5},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "invalid_identifier"

    def test_create_review_invalid_rating_too_low(
        self,
        client: TestClient,
        sample_book: Book,
        sample_user: User,
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 0},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["detail"].startswith("rating:")

    def test_create_review_invalid_rating_too_high(
        self,
        client: TestClient,
        sample_book: Book,
        sample_user: User,
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 6},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_create_review_comment_too_long(
        self,
        client: TestClient,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
    ):
        """Failed validation writes nothing and leaves the aggregates alone."""
        book_id = sample_book.id

        response = client.post(
            f"/api/v1/books/{book_id}/reviews",
            json={"rating": 5, "comment": "x" * 501},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        count = db_session.execute(select(func.count(Review.id))).scalar()
        assert count == 0
        book = get_book_json(client, book_id)
        assert book["num_reviews"] == 0
        assert book["average_rating"] == 0.0

    def test_validation_messages_are_joined(
        self,
        client: TestClient,
        sample_book: Book,
        sample_user: User,
    ):
        """Each failing field contributes one message to the detail."""
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 9, "comment": "x" * 501},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        detail = response.json()["detail"]
        assert "rating:" in detail
        assert ", comment:" in detail


# =============================================================================
# Get Single Review
# =============================================================================


class TestGetReview:
    """Tests for GET /api/v1/reviews/{review_id}"""

    def test_get_review_success(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/v1/reviews/{sample_review.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == sample_review.id
        assert data["rating"] == 4
        assert data["user"]["username"] == "testuser"
        assert data["book"] == {
            "id": sample_review.book_id,
            "title": "Dune",
            "author": "Herbert",
        }

    def test_get_review_not_found(self, client: TestClient):
        response = client.get("/api/v1/reviews/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Review not found"

    def test_get_review_invalid_id(self, client: TestClient):
        response = client.get("/api/v1/reviews/12x")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Invalid Review ID"


# =============================================================================
# Update Review
# =============================================================================


class TestUpdateReview:
    """Tests for PUT /api/v1/reviews/{review_id}"""

    def test_update_review_success(
        self,
        client: TestClient,
        sample_review: Review,
        sample_user: User,
    ):
        """Updating the rating recalculates the book's average."""
        book_id = sample_review.book_id

        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 2, "comment": "Changed my mind."},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["rating"] == 2
        assert data["comment"] == "Changed my mind."

        book = get_book_json(client, book_id)
        assert book["average_rating"] == 2.0
        assert book["num_reviews"] == 1

    def test_update_comment_only_keeps_rating(
        self,
        client: TestClient,
        sample_review: Review,
        sample_user: User,
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"comment": "Even better on a reread."},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["rating"] == 4
        assert data["comment"] == "Even better on a reread."

    def test_update_rating_only_keeps_comment(
        self,
        client: TestClient,
        sample_review: Review,
        sample_user: User,
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 5},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["rating"] == 5
        assert data["comment"] == "Great world building."

    def test_update_with_empty_values_keeps_everything(
        self,
        client: TestClient,
        sample_review: Review,
        sample_user: User,
    ):
        """Null and blank values mean "leave unchanged", not "clear"."""
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": None, "comment": "   "},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["rating"] == 4
        assert data["comment"] == "Great world building."

    def test_update_with_zero_rating_keeps_rating(
        self,
        client: TestClient,
        sample_review: Review,
        sample_user: User,
    ):
        """A rating of 0 counts as not provided; the comment still changes."""
        book_id = sample_review.book_id

        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 0, "comment": "New thoughts."},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["rating"] == 4
        assert data["comment"] == "New thoughts."

        book = get_book_json(client, book_id)
        assert book["average_rating"] == 4.0
        assert book["num_reviews"] == 1

    def test_update_with_out_of_range_rating(
        self,
        client: TestClient,
        sample_review: Review,
        sample_user: User,
    ):
        """Non-zero ratings outside 1-5 are still rejected."""
        for rating in [-1, 6]:
            response = client.put(
                f"/api/v1/reviews/{sample_review.id}",
                json={"rating": rating},
                headers=get_auth_header(sample_user),
            )

            assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY, rating

    def test_update_review_not_owner(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        second_user: User,
    ):
        """A non-owner is forbidden and the review is left as it was."""
        review_id = sample_review.id

        response = client.put(
            f"/api/v1/reviews/{review_id}",
            json={"rating": 1, "comment": "Hijacked"},
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {
            "error": "forbidden",
            "detail": "Not authorized to update this review",
        }

        db_session.expire_all()
        review = db_session.get(Review, review_id)
        assert review.rating == 4
        assert review.comment == "Great world building."

    def test_update_review_not_found(
        self, client: TestClient, sample_user: User
    ):
        response = client.put(
            "/api/v1/reviews/99999",
            json={"rating": 5},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_update_review_unauthenticated(
        self, client: TestClient, sample_review: Review
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 5},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_update_review_cannot_move_to_another_book(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        sample_user: User,
    ):
        """book_id is not an updatable field and is ignored."""
        other = Book(title="Emma", author="Austen", added_by=sample_user.id)
        db_session.add(other)
        db_session.commit()

        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 3, "book_id": other.id},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["book_id"] == sample_review.book_id


# =============================================================================
# Delete Review
# =============================================================================


class TestDeleteReview:
    """Tests for DELETE /api/v1/reviews/{review_id}"""

    def test_delete_review_success(
        self,
        client: TestClient,
        sample_review: Review,
        sample_user: User,
    ):
        """Deleting the only review resets the book to (0, 0)."""
        review_id = sample_review.id
        book_id = sample_review.book_id

        response = client.delete(
            f"/api/v1/reviews/{review_id}",
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = client.get(f"/api/v1/reviews/{review_id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

        book = get_book_json(client, book_id)
        assert book["average_rating"] == 0.0
        assert book["num_reviews"] == 0

    def test_delete_review_not_owner(
        self,
        client: TestClient,
        sample_review: Review,
        second_user: User,
    ):
        review_id = sample_review.id
        book_id = sample_review.book_id

        response = client.delete(
            f"/api/v1/reviews/{review_id}",
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Not authorized to delete this review"

        response = client.get(f"/api/v1/reviews/{review_id}")
        assert response.status_code == status.HTTP_200_OK
        assert get_book_json(client, book_id)["num_reviews"] == 1

    def test_delete_review_not_found(
        self, client: TestClient, sample_user: User
    ):
        response = client.delete(
            "/api/v1/reviews/99999",
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Rating Aggregation Through the API
# =============================================================================


class TestRatingAggregation:
    """The book's aggregates track the review set through every change."""

    def test_dune_scenario(
        self,
        client: TestClient,
        db_session: Session,
        sample_user: User,
        second_user: User,
    ):
        """
        A reviews 4 -> (4, 1); B reviews 2 -> (3, 2);
        delete A's -> (2, 1); delete B's -> (0, 0).
        """
        response = client.post(
            "/api/v1/books/",
            json={"title": "Dune", "author": "Herbert"},
            headers=get_auth_header(sample_user),
        )
        assert response.status_code == status.HTTP_201_CREATED
        book_id = response.json()["id"]
        assert response.json()["average_rating"] == 0.0
        assert response.json()["num_reviews"] == 0

        response = client.post(
            f"/api/v1/books/{book_id}/reviews",
            json={"rating": 4},
            headers=get_auth_header(sample_user),
        )
        review_a = response.json()["id"]
        book = get_book_json(client, book_id)
        assert (book["average_rating"], book["num_reviews"]) == (4.0, 1)

        response = client.post(
            f"/api/v1/books/{book_id}/reviews",
            json={"rating": 2},
            headers=get_auth_header(second_user),
        )
        review_b = response.json()["id"]
        book = get_book_json(client, book_id)
        assert (book["average_rating"], book["num_reviews"]) == (3.0, 2)

        client.delete(
            f"/api/v1/reviews/{review_a}",
            headers=get_auth_header(sample_user),
        )
        book = get_book_json(client, book_id)
        assert (book["average_rating"], book["num_reviews"]) == (2.0, 1)

        client.delete(
            f"/api/v1/reviews/{review_b}",
            headers=get_auth_header(second_user),
        )
        book = get_book_json(client, book_id)
        assert (book["average_rating"], book["num_reviews"]) == (0.0, 0)

    def test_average_is_not_rounded(
        self,
        client: TestClient,
        sample_book: Book,
        user_factory,
    ):
        """Ratings 5, 4, 4 average to 13/3, stored at full precision."""
        book_id = sample_book.id
        for username, rating in [("r1", 5), ("r2", 4), ("r3", 4)]:
            response = client.post(
                f"/api/v1/books/{book_id}/reviews",
                json={"rating": rating},
                headers=get_auth_header(user_factory(username)),
            )
            assert response.status_code == status.HTTP_201_CREATED

        book = get_book_json(client, book_id)
        assert book["num_reviews"] == 3
        assert abs(book["average_rating"] - 13 / 3) < 1e-9
        assert book["average_rating"] != 4.33


# =============================================================================
# Rating Statistics
# =============================================================================


class TestBookRatingStats:
    """Tests for GET /api/v1/books/{book_id}/rating"""

    def test_rating_stats_no_reviews(self, client: TestClient, sample_book: Book):
        response = client.get(f"/api/v1/books/{sample_book.id}/rating")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["average_rating"] == 0.0
        assert data["num_reviews"] == 0
        assert data["rating_distribution"] == {
            "1": 0, "2": 0, "3": 0, "4": 0, "5": 0,
        }

    def test_rating_stats_with_reviews(
        self,
        client: TestClient,
        sample_review: Review,
        second_user: User,
    ):
        book_id = sample_review.book_id
        client.post(
            f"/api/v1/books/{book_id}/reviews",
            json={"rating": 2},
            headers=get_auth_header(second_user),
        )

        response = client.get(f"/api/v1/books/{book_id}/rating")

        data = response.json()
        assert data["average_rating"] == 3.0
        assert data["num_reviews"] == 2
        assert data["rating_distribution"]["4"] == 1
        assert data["rating_distribution"]["2"] == 1

    def test_rating_stats_book_not_found(self, client: TestClient):
        response = client.get("/api/v1/books/99999/rating")

        assert response.status_code == status.HTTP_404_NOT_FOUND
