from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..config import MATCHES_PER_USER
from .events import EventEmitter, null_emitter
from .scoring import UserData, attractiveness_score, is_mutually_compatible

logger = logging.getLogger(__name__)


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    return tuple(sorted((user_a, user_b)))


def _valid_candidates(user_id: str, candidates: list[Any]) -> list[str]:
    out: list[str] = []
    for candidate in candidates:
        if not isinstance(candidate, str) or not candidate.strip():
            continue
        if candidate == user_id or candidate in out:
            continue
        out.append(candidate)
    return out


def find_candidates(
    user_id: str,
    users: dict[str, UserData],
    history: set[str] | None = None,
    blocked: set[str] | None = None,
    relaxed: bool = False,
    *,
    today: date | None = None,
    cfg: dict[str, Any] | None = None,
    limit: int = MATCHES_PER_USER,
) -> list[str]:
    """Rank up to ``limit`` candidates for one user, best first.

    Candidates are scanned in ``users`` iteration order and the sort is
    stable, so equal scores keep that order.
    """
    history = history or set()
    blocked = blocked or set()
    viewer = users.get(user_id)
    if viewer is None or not viewer.complete:
        return []

    scored: list[tuple[str, float]] = []
    for candidate_id, candidate in users.items():
        if candidate_id == user_id or not candidate_id:
            continue
        if candidate_id in blocked:
            continue
        if not candidate.complete:
            continue
        if not is_mutually_compatible(
            viewer.profile,
            viewer.preferences,
            candidate.profile,
            candidate.preferences,
            relaxed,
            today=today,
            cfg=cfg,
        ):
            continue
        if candidate_id in history:
            continue
        scored.append((candidate_id, attractiveness_score(viewer.profile, candidate.profile, today=today)))

    scored.sort(key=lambda x: -x[1])
    return [candidate_id for candidate_id, _ in scored[:limit]]


def reconcile_mutual_pairs(
    user_ids: list[str],
    potential: dict[str, list[str]],
    *,
    capacity: int = MATCHES_PER_USER,
    emit: EventEmitter = null_emitter,
) -> tuple[dict[str, list[str]], dict[str, int]]:
    """Keep only pairs proposed from both sides, at most ``capacity`` per user.

    Users are visited in ``user_ids`` order and each user's candidates in
    ranked order. Each unordered pair is decided once, on its first visit. A
    mutual pair that finds either side full is dropped, not backfilled, so when
    several pairs compete for a last slot the earliest visited one wins.
    """
    final: dict[str, list[str]] = {uid: [] for uid in user_ids}
    processed: set[tuple[str, str]] = set()
    stats = {"mutual_pairs": 0, "non_mutual_skipped": 0, "capacity_skipped": 0}

    for user_a in user_ids:
        for user_b in potential.get(user_a, []):
            if not user_b or user_b == user_a:
                continue
            key = canonical_pair(user_a, user_b)
            if key in processed:
                continue
            processed.add(key)

            if user_a not in potential.get(user_b, []):
                stats["non_mutual_skipped"] += 1
                emit("non_mutual_pair_skipped", {"user_id": user_a, "candidate_id": user_b})
                continue

            final_a = final.setdefault(user_a, [])
            final_b = final.setdefault(user_b, [])
            if len(final_a) >= capacity or len(final_b) >= capacity:
                stats["capacity_skipped"] += 1
                emit(
                    "mutual_pair_capacity_skipped",
                    {"user_a": user_a, "user_b": user_b, "a_count": len(final_a), "b_count": len(final_b)},
                )
                continue

            final_a.append(user_b)
            final_b.append(user_a)
            stats["mutual_pairs"] += 1
            emit("mutual_pair_created", {"user_a": user_a, "user_b": user_b})

    return final, stats


def match_distribution(final: dict[str, list[str]], capacity: int = MATCHES_PER_USER) -> dict[int, int]:
    counts = {n: 0 for n in range(capacity + 1)}
    for matches in final.values():
        n = len(matches)
        counts[n] = counts.get(n, 0) + 1
    return counts


@dataclass
class GenerationResult:
    user_ids: list[str]
    potential: dict[str, list[str]] = field(default_factory=dict)
    final: dict[str, list[str]] = field(default_factory=dict)
    skipped_users: list[str] = field(default_factory=list)
    candidate_errors: dict[str, str] = field(default_factory=dict)
    relaxed_retried: int = 0
    relaxed_found: int = 0
    mutual_pairs: int = 0
    non_mutual_skipped: int = 0
    capacity_skipped: int = 0
    capacity: int = MATCHES_PER_USER

    @property
    def distribution(self) -> dict[int, int]:
        return match_distribution(self.final, self.capacity)

    @property
    def matched_user_ids(self) -> list[str]:
        return [uid for uid in self.user_ids if self.final.get(uid)]

    def as_report(self) -> dict[str, Any]:
        return {
            "respondents": len(self.user_ids),
            "skipped_users": list(self.skipped_users),
            "candidate_errors": dict(self.candidate_errors),
            "relaxed_retried": self.relaxed_retried,
            "relaxed_found": self.relaxed_found,
            "mutual_pairs": self.mutual_pairs,
            "non_mutual_skipped": self.non_mutual_skipped,
            "capacity_skipped": self.capacity_skipped,
            "distribution": {str(k): v for k, v in self.distribution.items()},
        }


def _propose(
    result: GenerationResult,
    uid: str,
    users: dict[str, UserData],
    history: dict[str, set[str]],
    blocks: dict[str, set[str]],
    *,
    relaxed: bool,
    today: date,
    cfg: dict[str, Any] | None,
    emit: EventEmitter,
) -> list[str] | None:
    mode = "relaxed" if relaxed else "strict"
    try:
        candidates = find_candidates(
            uid,
            users,
            history.get(uid, set()),
            blocks.get(uid, set()),
            relaxed,
            today=today,
            cfg=cfg,
            limit=result.capacity,
        )
    except Exception as exc:
        logger.exception("[MATCHING] %s candidate search failed user_id=%s", mode, uid)
        result.candidate_errors[uid] = f"{mode}: {exc}"
        emit("candidate_error", {"user_id": uid, "mode": mode, "error": str(exc)})
        return None
    valid = _valid_candidates(uid, candidates)
    emit("candidates_found", {"user_id": uid, "mode": mode, "candidates": valid})
    return valid


def generate_weekly_matches(
    user_ids: list[str],
    users: dict[str, UserData],
    history: dict[str, set[str]] | None = None,
    blocks: dict[str, set[str]] | None = None,
    *,
    today: date | None = None,
    cfg: dict[str, Any] | None = None,
    capacity: int = MATCHES_PER_USER,
    emit: EventEmitter | None = None,
) -> GenerationResult:
    """Run strict proposals, the relaxed retry and mutual reconciliation.

    ``user_ids`` is the respondent list; its order is the candidate scan order,
    the stable tie-break order and the reconciliation priority order.
    """
    emit = emit or null_emitter
    today = today or date.today()
    history = history or {}
    blocks = blocks or {}
    result = GenerationResult(user_ids=list(user_ids), capacity=capacity)
    respondents = {uid: users.get(uid) or UserData() for uid in user_ids}
    emit("respondents_loaded", {"count": len(user_ids)})

    for uid in user_ids:
        if not respondents[uid].complete:
            result.skipped_users.append(uid)
            result.potential[uid] = []
            emit("user_skipped", {"user_id": uid, "reason": "missing_profile_or_preferences"})
            continue
        proposed = _propose(result, uid, respondents, history, blocks, relaxed=False, today=today, cfg=cfg, emit=emit)
        result.potential[uid] = proposed or []
    emit(
        "phase_complete",
        {"phase": "strict", "processed": len(user_ids) - len(result.skipped_users), "skipped": len(result.skipped_users)},
    )

    skipped = set(result.skipped_users)
    for uid in user_ids:
        if uid in skipped or result.potential.get(uid):
            continue
        result.relaxed_retried += 1
        proposed = _propose(result, uid, respondents, history, blocks, relaxed=True, today=today, cfg=cfg, emit=emit)
        if proposed:
            result.potential[uid] = proposed
            result.relaxed_found += 1
        else:
            emit("relaxed_retry", {"user_id": uid, "found": 0})
    emit("phase_complete", {"phase": "relaxed", "retried": result.relaxed_retried, "found": result.relaxed_found})

    final, stats = reconcile_mutual_pairs(result.user_ids, result.potential, capacity=capacity, emit=emit)
    result.final = final
    result.mutual_pairs = stats["mutual_pairs"]
    result.non_mutual_skipped = stats["non_mutual_skipped"]
    result.capacity_skipped = stats["capacity_skipped"]
    emit("phase_complete", {"phase": "mutual", **stats})
    emit("distribution", {str(k): v for k, v in result.distribution.items()})
    return result
