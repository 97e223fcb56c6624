"""Compatibility scoring, candidate filtering and profile completion.

Everything here is a pure function of profile snapshots. Option-derived
data (education ranks) is passed in by the caller, which reads it from
the option registry.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from src.schemas.common import Pagination
from src.schemas.match import CandidateMatch, CandidateProfile, CompatibilityBreakdown
from src.schemas.profile import Profile, calculate_age

# Points awarded per satisfied criterion; additive, summing to 100
CRITERION_WEIGHTS: dict[str, int] = {
    "age": 25,
    "gender": 20,
    "religion": 25,
    "children": 15,
    "education": 15,
}

# Preference values that never constrain
OPEN_PREFERENCES = frozenset({"any", "not-important", "either", "not-specified"})
BOTH_GENDERS = "both"
SAME_RELIGION = frozenset({"same", "similar"})
RELIGION_ONLY = {
    "christian-only": "christianity",
    "muslim-only": "islam",
}
SAME_OR_HIGHER = "same-or-higher"
BACHELORS_PLUS = "bachelors-plus"

BASIC_FIELDS = (
    "username",
    "profile_picture",
    "bio",
    "date_of_birth",
    "gender",
    "country_of_origin",
    "current_location",
    "home_language",
    "religion",
    "serving_as",
    "relationship_status",
    "looking_for",
    "have_children",
    "education",
    "occupation",
    "income",
    "height",
)
BASIC_FIELDS_SHARE = 85
PHOTOS_BONUS = 10
PREFERENCES_BONUS = 5


@dataclass(frozen=True)
class EducationRanking:
    """Ordinal view of the education category."""

    ranks: dict[str, int] = field(default_factory=dict)
    bachelors_value: str = "bachelors-degree"

    def rank(self, value: str | None) -> int | None:
        """Return the rank of value, or None when it is unranked."""
        if value is None:
            return None
        return self.ranks.get(value)


def gender_matches(viewer: Profile, candidate: Profile) -> bool:
    """Check the candidate against the viewer's gender preference."""
    preference = viewer.match_preferences.gender if viewer.match_preferences else None
    if preference is None or preference == BOTH_GENDERS:
        return True
    return candidate.gender == preference


def age_matches(viewer: Profile, candidate: Profile, today: date | None = None) -> bool:
    """Check the candidate's age against the viewer's age range."""
    age_range = viewer.match_preferences.age_range if viewer.match_preferences else None
    if age_range is None:
        return True
    return age_range.contains(calculate_age(candidate.date_of_birth, today))


def religion_matches(viewer: Profile, candidate: Profile) -> bool:
    """Check the candidate against the viewer's religion preference."""
    preference = viewer.match_preferences.religion if viewer.match_preferences else None
    if preference is None or preference in OPEN_PREFERENCES:
        return True
    if preference in SAME_RELIGION:
        return viewer.religion is not None and viewer.religion == candidate.religion
    if preference in RELIGION_ONLY:
        return candidate.religion == RELIGION_ONLY[preference]
    return False


def children_matches(viewer: Profile, candidate: Profile) -> bool:
    """Check the candidate against the viewer's wants-children preference."""
    preference = viewer.match_preferences.wants_children if viewer.match_preferences else None
    if preference is None or preference in OPEN_PREFERENCES:
        return True
    if preference == "yes":
        return candidate.wants_children is True
    if preference == "no":
        return candidate.wants_children is False
    return False


def education_matches(viewer: Profile, candidate: Profile, ranking: EducationRanking) -> bool:
    """Check the candidate against the viewer's education preference."""
    preference = viewer.match_preferences.education_level if viewer.match_preferences else None
    if preference is None or preference in OPEN_PREFERENCES:
        return True
    candidate_rank = ranking.rank(candidate.education)
    if candidate_rank is None:
        return False
    if preference == SAME_OR_HIGHER:
        viewer_rank = ranking.rank(viewer.education)
        return viewer_rank is not None and candidate_rank >= viewer_rank
    if preference == BACHELORS_PLUS:
        threshold = ranking.rank(ranking.bachelors_value)
        return threshold is not None and candidate_rank >= threshold
    return False


def evaluate_criteria(
    viewer: Profile,
    candidate: Profile,
    ranking: EducationRanking | None = None,
    today: date | None = None,
) -> CompatibilityBreakdown:
    """Evaluate each compatibility criterion from the viewer's perspective."""
    ranking = ranking or EducationRanking()
    return CompatibilityBreakdown(
        age=age_matches(viewer, candidate, today),
        gender=gender_matches(viewer, candidate),
        religion=religion_matches(viewer, candidate),
        children=children_matches(viewer, candidate),
        education=education_matches(viewer, candidate, ranking),
    )


def score_breakdown(breakdown: CompatibilityBreakdown) -> int:
    """Sum the weights of the satisfied criteria."""
    return sum(weight for name, weight in CRITERION_WEIGHTS.items() if getattr(breakdown, name))


def calculate_compatibility(
    viewer: Profile,
    candidate: Profile,
    ranking: EducationRanking | None = None,
    today: date | None = None,
) -> int:
    """Score a candidate between 0 and 100 from the viewer's preferences.

    Args:
        viewer: Profile whose preferences are applied.
        candidate: Profile being scored.
        ranking: Education ordinal data from the option registry.
        today: Reference date for age calculation.

    Returns:
        int: Sum of the weights of satisfied criteria.
    """
    return score_breakdown(evaluate_criteria(viewer, candidate, ranking, today))


def passes_filters(viewer: Profile, candidate: Profile, today: date | None = None) -> bool:
    """Apply hard filters and the religion soft filter.

    Hard: not the viewer, active, gender preference, age range.
    Soft: exact religion when the viewer asks for the same religion.
    """
    if candidate.user_id == viewer.user_id or not candidate.is_active:
        return False
    if not gender_matches(viewer, candidate) or not age_matches(viewer, candidate, today):
        return False
    preference = viewer.match_preferences.religion if viewer.match_preferences else None
    if preference == "same" and not religion_matches(viewer, candidate):
        return False
    return True


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _activity_key(profile: Profile) -> datetime:
    last_active = profile.last_active
    if last_active is None:
        return _EPOCH
    if last_active.tzinfo is None:
        return last_active.replace(tzinfo=timezone.utc)
    return last_active


def rank_candidates(
    viewer: Profile,
    pool: list[Profile],
    ranking: EducationRanking | None = None,
    today: date | None = None,
) -> list[CandidateMatch]:
    """Filter and order the whole pool without paginating."""
    scored: list[tuple[CandidateMatch, Profile]] = []
    for candidate in pool:
        if not passes_filters(viewer, candidate, today):
            continue
        breakdown = evaluate_criteria(viewer, candidate, ranking, today)
        scored.append(
            (
                CandidateMatch(
                    profile=CandidateProfile.from_profile(candidate),
                    compatibility=score_breakdown(breakdown),
                    matches_preferences=breakdown.age and breakdown.gender and breakdown.religion,
                ),
                candidate,
            )
        )

    scored.sort(
        key=lambda item: (
            item[0].compatibility,
            _activity_key(item[1]),
            item[1].profile_completion,
        ),
        reverse=True,
    )
    return [match for match, _ in scored]


def find_candidates(
    viewer: Profile,
    pool: list[Profile],
    pagination: Pagination | None = None,
    ranking: EducationRanking | None = None,
    today: date | None = None,
) -> list[CandidateMatch]:
    """Filter, score and order candidates for the viewer, then paginate.

    Ordering is compatibility descending, then most recent activity,
    then profile completion.
    """
    pagination = pagination or Pagination()
    ranked = rank_candidates(viewer, pool, ranking, today)
    return ranked[pagination.skip : pagination.skip + pagination.limit]


def _is_filled(profile: Profile, field_name: str) -> bool:
    value = getattr(profile, field_name)
    if field_name == "profile_picture":
        return bool(value and value.url)
    if field_name == "current_location":
        return bool(value and (value.city or value.country))
    return bool(value)


def calculate_completion(profile: Profile) -> int:
    """Percentage of the profile that is filled in.

    Basic fields contribute up to 85 points, photos 10 and any match
    preference 5, capped at 100.
    """
    completed = sum(1 for name in BASIC_FIELDS if _is_filled(profile, name))
    percentage = round(completed / len(BASIC_FIELDS) * BASIC_FIELDS_SHARE)
    if profile.photos:
        percentage += PHOTOS_BONUS
    if profile.match_preferences is not None and profile.match_preferences.is_set():
        percentage += PREFERENCES_BONUS
    return min(100, percentage)


# Display names of every field that counts towards completion
COMPLETION_FIELD_LABELS = {
    "username": "Username",
    "profile_picture": "Profile Picture",
    "bio": "Bio",
    "photos": "Photos",
    "date_of_birth": "Date of Birth",
    "gender": "Gender",
    "country_of_origin": "Country of Origin",
    "current_location": "Current Location",
    "home_language": "Home Language",
    "religion": "Religion",
    "serving_as": "Serving As",
    "relationship_status": "Relationship Status",
    "looking_for": "Looking For",
    "have_children": "Have Children",
    "education": "Education",
    "occupation": "Occupation",
    "income": "Income",
    "height": "Height",
    "match_preferences": "Match Preferences",
}


def missing_fields(profile: Profile) -> list[str]:
    """Display names of the completion fields that are still empty."""
    missing = []
    for name, label in COMPLETION_FIELD_LABELS.items():
        if name == "photos":
            filled = bool(profile.photos)
        elif name == "match_preferences":
            filled = profile.match_preferences is not None and profile.match_preferences.is_set()
        else:
            filled = _is_filled(profile, name)
        if not filled:
            missing.append(label)
    return missing
