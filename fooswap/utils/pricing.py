def spot_price(reserve_a: float, reserve_b: float) -> float:
    """Constant-product spot price of token B in A: reserve_b / reserve_a.

    An empty (or negative) A side has no meaningful price, so it reads as 0.
    """
    if reserve_a <= 0:
        return 0.0
    return reserve_b / reserve_a


def parse_pair(pair: str | None) -> tuple[str, str] | None:
    """"TOKENA/TOKENB" → ("TOKENA", "TOKENB"); None when malformed."""
    if not pair:
        return None
    tokens = pair.split("/")
    if len(tokens) != 2 or not all(t.strip() for t in tokens):
        return None
    return tokens[0].strip(), tokens[1].strip()
