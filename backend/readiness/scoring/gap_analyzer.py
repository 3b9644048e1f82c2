from readiness.scoring.score_calculator import round_half_up

GAP_FLOOR = 15
GAP_CEILING = 75
MIN_TOKEN_LENGTH = 4


def compute_gap(user_text: str | None, generated_text: str | None) -> int:
    """Bounded divergence between a user's own description and generated reference text.

    The result is clamped to [15, 75] so that a degenerate 0% or 100% is never
    presented as meaningful precision. Empty input on either side yields the ceiling.
    """
    ratio = overlap_ratio(user_text, generated_text)
    gap = round_half_up((1.0 - ratio) * 100.0)
    return max(GAP_FLOOR, min(GAP_CEILING, gap))


def overlap_ratio(user_text: str | None, generated_text: str | None) -> float:
    user_tokens = _tokenize(user_text)
    generated_tokens = set(_tokenize(generated_text))
    if not user_tokens or not generated_tokens:
        return 0.0
    matched = sum(
        1
        for token in user_tokens
        if any(token in candidate or candidate in token for candidate in generated_tokens)
    )
    return matched / len(user_tokens)


def _tokenize(text: str | None) -> list[str]:
    return [token for token in str(text or "").lower().split() if len(token) >= MIN_TOKEN_LENGTH]
