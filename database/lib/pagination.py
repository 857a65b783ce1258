"""Cursor pagination over ``id DESC``.

Lists are ordered newest first. ``after`` moves towards older rows and
``before`` towards newer ones; the cursor row itself is never returned.
"""
from typing import Any, Dict, List, Optional, Sequence

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def page_size(limit: Optional[int]) -> int:
    """Clamp a requested page size to ``MAX_LIMIT``."""
    return min(MAX_LIMIT, limit or DEFAULT_LIMIT)


def _where_sql(clauses: Sequence[str]) -> str:
    return f"WHERE {' AND '.join(clauses)}" if clauses else ''


async def paginate(
    conn,
    table: str,
    where: Optional[Sequence[str]] = None,
    params: Sequence[Any] = (),
    after: Optional[int] = None,
    before: Optional[int] = None,
    limit: Optional[int] = None
) -> Dict[str, Any]:
    """Fetch one page of ``table``.

    Args:
        conn: Database connection
        table: Table name (trusted, never user input)
        where: SQL filter clauses joined with AND, using ``$1..$n``
        params: Values for the filter placeholders
        after: Return rows with an id lower than this cursor
        before: Return rows with an id higher than this cursor
        limit: Requested page size

    Returns:
        Dict with ``data`` (list of row dicts), ``has_next`` and ``has_previous``
    """
    clauses: List[str] = list(where or [])
    args: List[Any] = list(params)
    size = page_size(limit)

    if before is not None:
        args.append(before)
        clauses.append(f'id > ${len(args)}')
        order = 'ASC'
    else:
        if after is not None:
            args.append(after)
            clauses.append(f'id < ${len(args)}')
        order = 'DESC'

    rows = await conn.fetch(
        f'''
        SELECT * FROM {table}
        {_where_sql(clauses)}
        ORDER BY id {order}
        LIMIT {size}
        ''',
        *args
    )
    data = [dict(row) for row in rows]
    if before is not None:
        data.reverse()

    if not data:
        return {'data': [], 'has_next': False, 'has_previous': False}

    base: List[str] = list(where or [])
    has_next = await _exists(conn, table, base, params, f'id < ${len(params) + 1}', data[-1]['id'])
    has_previous = await _exists(conn, table, base, params, f'id > ${len(params) + 1}', data[0]['id'])

    return {'data': data, 'has_next': has_next, 'has_previous': has_previous}


async def _exists(conn, table: str, base, params, cursor_clause: str, cursor: int) -> bool:
    return await conn.fetchval(
        f'SELECT EXISTS (SELECT 1 FROM {table} {_where_sql([*base, cursor_clause])})',
        *params,
        cursor
    )
