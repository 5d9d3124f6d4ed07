from typing import Any

from ..config import MATCHES_PER_USER


def find_mutuality_errors(
    records: dict[str, list[Any]],
    revealed: dict[str, list[Any]] | None = None,
    capacity: int = MATCHES_PER_USER,
) -> list[str]:
    """Check every A -> B entry against B's record.

    ``records`` maps each owner to the partner list stored for one prompt.
    When ``revealed`` is given, each owner's flags must line up with its
    partner list.
    """
    errors: list[str] = []

    for owner, matches in records.items():
        invalid = [m for m in matches if not isinstance(m, str) or not m.strip()]
        if invalid:
            errors.append(f"{owner} has invalid match values: {invalid!r}")
        if owner in matches:
            errors.append(f"{owner} is matched with themselves")
        duplicates = sorted({m for m in matches if isinstance(m, str) and matches.count(m) > 1})
        if duplicates:
            errors.append(f"{owner} has duplicate matches: {', '.join(duplicates)}")
        if len(matches) > capacity:
            errors.append(f"{owner} has {len(matches)} matches, more than {capacity}")
        if revealed is not None:
            flags = revealed.get(owner) or []
            if len(flags) != len(matches):
                errors.append(f"{owner} has {len(matches)} matches but {len(flags)} revealed flags")

    for owner, matches in records.items():
        for partner in matches:
            if not isinstance(partner, str) or not partner.strip() or partner == owner:
                continue
            partner_matches = records.get(partner)
            if partner_matches is None:
                errors.append(f"{owner} -> {partner}, but {partner} has no match record")
            elif owner not in partner_matches:
                errors.append(f"{owner} -> {partner}, but {partner} does not list {owner} (non-mutual)")

    return errors


def validate_mutuality(
    records: dict[str, list[Any]],
    revealed: dict[str, list[Any]] | None = None,
    capacity: int = MATCHES_PER_USER,
) -> dict[str, Any]:
    errors = find_mutuality_errors(records, revealed, capacity)
    return {
        "is_valid": not errors,
        "records_checked": len(records),
        "errors": errors,
    }
