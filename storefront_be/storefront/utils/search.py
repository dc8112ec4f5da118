LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """``%text%`` for ``ilike`` with the user's own ``%``/``_`` matched literally.

    Pass ``escape=LIKE_ESCAPE`` alongside the pattern.
    """
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
