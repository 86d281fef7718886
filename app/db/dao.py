"""Data access for simulations, their spins and users.

`settings` and `raw` are stored as JSON text and decoded back to dicts.
"""
import json
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"


def _decode_json(row: Optional[Dict[str, Any]], field: str) -> Optional[Dict[str, Any]]:
    if row is not None and isinstance(row.get(field), str):
        try:
            row[field] = json.loads(row[field])
        except ValueError:
            logger.warning(f"Stored {field} is not valid JSON, returning raw text")
    return row


def create_simulation(db, data: Dict[str, Any]) -> int:
    """Insert a simulation row and return its generated id."""
    cursor = db.run(
        f"""INSERT INTO simulations
               (userId, strategy, startingInvestment, finalEarnings,
                finalPortfolio, totalSpins, settings, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, json(?), {_NOW})""",
        (
            data.get('userId') or None,
            data.get('strategy'),
            data.get('startingInvestment'),
            data.get('finalEarnings'),
            data.get('finalPortfolio'),
            data.get('totalSpins'),
            json.dumps(data.get('settings') or {}),
        ),
    )
    return cursor.lastrowid


def list_simulations(db, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    if user_id:
        rows = db.all(
            "SELECT * FROM simulations WHERE userId = ? ORDER BY timestamp DESC, id DESC",
            (user_id,),
        )
    else:
        rows = db.all("SELECT * FROM simulations ORDER BY timestamp DESC, id DESC")
    return [_decode_json(r, 'settings') for r in rows]


def insert_spins(db, spins: List[Dict[str, Any]]) -> None:
    """Insert all spins in one transaction; nothing is kept if any row fails."""
    if not spins:
        return
    with db.transaction() as conn:
        conn.executemany(
            """INSERT INTO simulation_spins
                   (simulationId, spinNumber, drawnNumber, spinNetResult,
                    cumulativeEarnings, raw)
               VALUES (?, ?, ?, ?, ?, json(?))""",
            [
                (
                    s['simulationId'],
                    s['spinNumber'],
                    s['drawnNumber'],
                    s['spinNetResult'],
                    s['cumulativeEarnings'],
                    json.dumps(s.get('raw') or {}),
                )
                for s in spins
            ],
        )


def get_simulation(db, simulation_id: int) -> Optional[Dict[str, Any]]:
    row = db.get("SELECT * FROM simulations WHERE id = ?", (simulation_id,))
    return _decode_json(row, 'settings')


def list_spins(db, simulation_id: int, limit: Optional[int] = None,
               offset: Optional[int] = None) -> List[Dict[str, Any]]:
    """Spins of one simulation ordered by spinNumber; offset only applies with a limit."""
    sql = "SELECT * FROM simulation_spins WHERE simulationId = ? ORDER BY spinNumber ASC"
    params: list = [simulation_id]
    if limit:
        sql += " LIMIT ?"
        params.append(int(limit))
        if offset:
            sql += " OFFSET ?"
            params.append(int(offset))
    return [_decode_json(r, 'raw') for r in db.all(sql, params)]


def get_simulation_with_spins(db, simulation_id: int) -> Optional[Dict[str, Any]]:
    simulation = get_simulation(db, simulation_id)
    if simulation is None:
        return None
    return {'simulation': simulation, 'spins': list_spins(db, simulation_id)}


def get_spins_stats(db, simulation_id: int) -> Dict[str, Any]:
    return db.get(
        """SELECT
               COUNT(*) AS totalSpins,
               MIN(spinNumber) AS firstSpin,
               MAX(spinNumber) AS lastSpin,
               MIN(cumulativeEarnings) AS minEarnings,
               MAX(cumulativeEarnings) AS maxEarnings,
               AVG(spinNetResult) AS avgNetResult
           FROM simulation_spins
           WHERE simulationId = ?""",
        (simulation_id,),
    )


def get_user(db, uid: str) -> Optional[Dict[str, Any]]:
    return db.get("SELECT * FROM users WHERE uid = ?", (uid,))


def _or_default(value, default):
    return default if value is None else value


def save_simulation(db, body: Dict[str, Any]) -> int:
    """Persist a simulation and, when present, its per-spin `results`.

    Missing spin fields default to 0 and the spin number to its 1-based
    position; the whole result item is kept as `raw`.
    """
    simulation_id = create_simulation(db, body)

    results = body.get('results')
    if isinstance(results, list) and results:
        spins = [
            {
                'simulationId': simulation_id,
                'spinNumber': _or_default(r.get('spin'), idx + 1),
                'drawnNumber': _or_default(r.get('drawnNumber'), 0),
                'spinNetResult': _or_default(r.get('spinNetResult'), 0),
                'cumulativeEarnings': _or_default(r.get('cumulativeEarnings'), 0),
                'raw': r,
            }
            for idx, r in enumerate(results)
        ]
        insert_spins(db, spins)
    return simulation_id
