"""Read every match of a repository query, a page at a time."""


def fetch_all(query, page_size: int) -> list:
    """Materialise all items of ``query``.

    The query must carry a deterministic ``order_by`` so pages neither
    overlap nor skip records.
    """
    items = []
    offset = 0
    while True:
        page = query.offset(offset).limit(page_size).all()
        items.extend(page.items)
        offset += len(page.items)
        if not page.items or offset >= page.total:
            return items
