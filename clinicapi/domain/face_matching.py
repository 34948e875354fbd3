"""
Face similarity matching

Re-identifies returning customers by comparing a freshly computed feature
summary against the summaries stored on customer pages.

    normalize()  raw client payload -> fully populated FeatureSummary
    score()      weighted similarity of two summaries, in [0, 1]
    rank()       hard demographic exclusion, scoring, threshold, sort
"""
import json
import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional

import numpy as np

from .exceptions import DeserializationError
from .models import CandidateRecord, DecodedCandidate, FeatureSummary, Match, MatchResult

logger = logging.getLogger(__name__)

# Minimum similarity a candidate must exceed (strictly) to be returned
MATCH_THRESHOLD = 0.6

# Power applied to the final composite; spreads weak matches away from strong ones
SPREAD_EXPONENT = 1.5

# Candidates further apart than this in age are never scored
MAX_AGE_GAP = 20

UNCLEAR_GENDER = "불명확"
MALE = "남성"
ANGULAR_CONTOUR = "각진 형태"
ROUND_CONTOUR = "둥근 형태"

# Ratio differences at or above this are treated as totally dissimilar
RATIO_DIFF_RANGE = 0.2

# Age difference at which age similarity reaches 0
AGE_SIMILARITY_RANGE = 15

QUALITY_FLOOR = 0.7

FEATURE_WEIGHT = 0.6
AGE_WEIGHT = 0.2
GENDER_WEIGHT = 0.2

RATIO_FEATURES = (
    ("eye_distance_ratio", 0.25),
    ("eye_nose_ratio", 0.25),
    ("nose_mouth_ratio", 0.25),
)
SYMMETRY_WEIGHT = 0.15
CONTOUR_WEIGHT = 0.10

# Applied by normalize() to fields still missing after lookup
DEFAULTS = {
    "eye_distance_ratio": 0.45,
    "eye_nose_ratio": 0.35,
    "nose_mouth_ratio": 0.25,
    "symmetry_score": 0.8,
    "image_quality_score": 70,
}

# (attribute, wire name, looked up under "embedding" first)
_FIELDS = (
    ("eye_distance_ratio", "eyeDistanceRatio", True),
    ("eye_nose_ratio", "eyeNoseRatio", True),
    ("nose_mouth_ratio", "noseMouthRatio", True),
    ("symmetry_score", "symmetryScore", True),
    ("contour_features", "contourFeatures", True),
    ("gender", "gender", False),
    ("age", "age", False),
    ("image_quality_score", "imageQualityScore", False),
)
_TEXT_FIELDS = {"contour_features", "gender"}


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _lookup(raw: Mapping[str, Any], key: str, nested: bool) -> Any:
    """Read embedding.<key>, falling back to <key>"""
    if nested:
        embedding = raw.get("embedding")
        if isinstance(embedding, Mapping):
            value = embedding.get(key)
            if value is not None:
                return value
    return raw.get(key)


def _coerce(attr: str, value: Any) -> Any:
    if attr in _TEXT_FIELDS:
        return value if isinstance(value, str) and value else None
    return float(value) if is_number(value) else None


def parse_summary(raw: Any) -> FeatureSummary:
    """Read a summary from either payload shape without applying defaults"""
    if not isinstance(raw, Mapping):
        return FeatureSummary()
    values = {attr: _coerce(attr, _lookup(raw, key, nested)) for attr, key, nested in _FIELDS}
    return FeatureSummary(**values)


def normalize(raw: Any) -> FeatureSummary:
    """
    Build a fully populated summary from a client payload.

    Accepts the flat shape and the shape with ratios nested under
    "embedding". Never raises; anything unreadable falls back to DEFAULTS.
    """
    summary = parse_summary(raw)
    missing = {
        attr: default for attr, default in DEFAULTS.items()
        if getattr(summary, attr) is None
    }
    if summary.contour_features is None:
        missing["contour_features"] = ANGULAR_CONTOUR if summary.gender == MALE else ROUND_CONTOUR
    return summary.with_values(**missing) if missing else summary


def decode_candidate(record: CandidateRecord) -> DecodedCandidate:
    """Decode a candidate's stored embedding, capturing failures in the result"""
    try:
        raw = json.loads(record.embedding_text)
    except (TypeError, ValueError) as e:
        return DecodedCandidate(record=record, error=DeserializationError("Invalid embedding JSON", str(e)))
    if not isinstance(raw, Mapping):
        return DecodedCandidate(
            record=record,
            error=DeserializationError("Embedding is not an object", type(raw).__name__),
        )
    return DecodedCandidate(record=record, summary=parse_summary(raw))


def _ratio_similarity(a: float, b: float) -> float:
    return 1 - min(abs(a - b) / RATIO_DIFF_RANGE, 1)


def feature_similarity(a: FeatureSummary, b: FeatureSummary) -> float:
    """Weighted mean over the geometric features present on both sides"""
    sims: List[float] = []
    weights: List[float] = []

    for attr, weight in RATIO_FEATURES:
        va, vb = getattr(a, attr), getattr(b, attr)
        if va is not None and vb is not None:
            sims.append(_ratio_similarity(va, vb))
            weights.append(weight)

    if a.symmetry_score is not None and b.symmetry_score is not None:
        sims.append(1 - abs(a.symmetry_score - b.symmetry_score))
        weights.append(SYMMETRY_WEIGHT)

    if a.contour_features and b.contour_features:
        sims.append(1.0 if a.contour_features == b.contour_features else 0.5)
        weights.append(CONTOUR_WEIGHT)

    if not weights:
        return 0.0
    return float(np.average(sims, weights=weights))


def age_similarity(a: FeatureSummary, b: FeatureSummary) -> float:
    if a.age is None or b.age is None:
        return 0.0
    return max(0.0, 1 - abs(a.age - b.age) / AGE_SIMILARITY_RANGE)


def gender_similarity(a: FeatureSummary, b: FeatureSummary) -> float:
    if not a.gender or not b.gender:
        return 0.0
    return 1.0 if a.gender == b.gender else 0.0


def quality_factor(a: FeatureSummary, b: FeatureSummary) -> float:
    if a.image_quality_score is None or b.image_quality_score is None:
        return 1.0
    avg_quality = (a.image_quality_score + b.image_quality_score) / 2
    return max(QUALITY_FLOOR, avg_quality / 100)


def score(a: Optional[FeatureSummary], b: Optional[FeatureSummary]) -> float:
    """
    Similarity of two summaries in [0, 1].

    Only rank order is meaningful; the value is a heuristic composite,
    not a probability. Returns 0.0 for missing or unusable input.
    """
    if not isinstance(a, FeatureSummary) or not isinstance(b, FeatureSummary):
        return 0.0

    try:
        features = feature_similarity(a, b)
        age = age_similarity(a, b)
        gender = gender_similarity(a, b)
        quality = quality_factor(a, b)
    except (TypeError, ValueError, ZeroDivisionError) as e:
        logger.error(f"Similarity calculation failed: {e}")
        return 0.0

    raw = features * FEATURE_WEIGHT + age * AGE_WEIGHT + gender * GENDER_WEIGHT
    final = min(1.0, max(0.0, raw)) * quality
    similarity = min(1.0, max(0.0, final)) ** SPREAD_EXPONENT

    logger.debug(
        f"features={features:.3f} age={age:.3f} gender={gender:.3f} "
        f"quality={quality:.3f} raw={raw:.3f} adjusted={similarity:.3f}"
    )
    return similarity


def is_excluded(query: FeatureSummary, candidate: FeatureSummary) -> bool:
    """Hard demographic mismatch: the candidate is never scored"""
    gender_mismatch = (
        bool(query.gender) and bool(candidate.gender)
        and query.gender != candidate.gender
        and query.gender != UNCLEAR_GENDER
        and candidate.gender != UNCLEAR_GENDER
    )
    age_mismatch = (
        query.age is not None and candidate.age is not None
        and abs(query.age - candidate.age) > MAX_AGE_GAP
    )
    return gender_mismatch or age_mismatch


def rank(
    query: FeatureSummary,
    candidates: Iterable[CandidateRecord],
    threshold: float = MATCH_THRESHOLD,
    scorer: Callable[[FeatureSummary, FeatureSummary], float] = score,
) -> MatchResult:
    """
    Rank candidates against a query summary.

    Candidates whose stored embedding cannot be decoded are skipped.
    The result keeps only similarities strictly above threshold, sorted
    descending; ties keep input order.
    """
    matches: List[Match] = []

    for decoded in map(decode_candidate, candidates):
        if not decoded.ok:
            logger.warning(f"Skipping customer {decoded.record.id}: {decoded.error}")
            continue

        if is_excluded(query, decoded.summary):
            logger.info(f"Skipping customer {decoded.record.id}: gender/age mismatch")
            continue

        similarity = scorer(query, decoded.summary)
        logger.info(f"Customer {decoded.record.id} similarity: {similarity * 100:.1f}%")

        if similarity > threshold:
            matches.append(Match(record=decoded.record, similarity=similarity))

    matches.sort(key=lambda m: m.similarity, reverse=True)
    return MatchResult(matches=matches)
