"""
Unit Tests for the simulation DAO.
"""
import os
import sqlite3
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.db import dao


def _simulation(**overrides):
    data = {
        'userId': 'u1',
        'strategy': 'standard_martingale',
        'startingInvestment': 10000,
        'finalEarnings': 60,
        'finalPortfolio': 10060,
        'totalSpins': 3,
        'settings': {'seed': 42},
    }
    data.update(overrides)
    return data


def _spins(simulation_id, nets=(50, -20, 30)):
    spins = []
    cumulative = 0
    for i, net in enumerate(nets, start=1):
        cumulative += net
        spins.append({
            'simulationId': simulation_id,
            'spinNumber': i,
            'drawnNumber': i,
            'spinNetResult': net,
            'cumulativeEarnings': cumulative,
            'raw': {'spin': i},
        })
    return spins


class TestSimulations:
    def test_create_returns_id(self, db):
        first = dao.create_simulation(db, _simulation())
        second = dao.create_simulation(db, _simulation())
        assert first > 0
        assert second == first + 1

    def test_settings_round_trip_as_dict(self, db):
        sim_id = dao.create_simulation(db, _simulation(settings={'a': [1, 2]}))
        assert dao.get_simulation(db, sim_id)['settings'] == {'a': [1, 2]}

    def test_missing_user_stored_as_null(self, db):
        sim_id = dao.create_simulation(db, _simulation(userId=''))
        assert dao.get_simulation(db, sim_id)['userId'] is None

    def test_missing_required_field_fails(self, db):
        data = _simulation()
        del data['strategy']
        with pytest.raises(sqlite3.IntegrityError):
            dao.create_simulation(db, data)

    def test_list_filters_by_user_newest_first(self, db):
        a = dao.create_simulation(db, _simulation(userId='u1'))
        dao.create_simulation(db, _simulation(userId='u2'))
        c = dao.create_simulation(db, _simulation(userId='u1'))

        rows = dao.list_simulations(db, 'u1')
        assert [r['id'] for r in rows] == [c, a]
        assert len(dao.list_simulations(db)) == 3

    def test_get_unknown_returns_none(self, db):
        assert dao.get_simulation_with_spins(db, 999) is None


class TestSpins:
    def test_insert_and_list_ordered(self, db):
        sim_id = dao.create_simulation(db, _simulation())
        dao.insert_spins(db, list(reversed(_spins(sim_id))))
        spins = dao.list_spins(db, sim_id)
        assert [s['spinNumber'] for s in spins] == [1, 2, 3]
        assert spins[0]['raw'] == {'spin': 1}

    def test_limit_and_offset(self, db):
        sim_id = dao.create_simulation(db, _simulation())
        dao.insert_spins(db, _spins(sim_id, nets=range(10)))
        assert [s['spinNumber'] for s in dao.list_spins(db, sim_id, limit=3)] == [1, 2, 3]
        assert [s['spinNumber'] for s in dao.list_spins(db, sim_id, limit=3, offset=4)] == [5, 6, 7]
        # offset without a limit is ignored
        assert len(dao.list_spins(db, sim_id, offset=4)) == 10

    def test_insert_is_all_or_nothing(self, db):
        sim_id = dao.create_simulation(db, _simulation())
        spins = _spins(sim_id)
        spins[2]['drawnNumber'] = 99
        with pytest.raises(sqlite3.IntegrityError):
            dao.insert_spins(db, spins)
        assert dao.list_spins(db, sim_id) == []

    def test_empty_insert_is_noop(self, db):
        dao.insert_spins(db, [])

    def test_spin_requires_existing_simulation(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            dao.insert_spins(db, _spins(12345))

    def test_stats(self, db):
        sim_id = dao.create_simulation(db, _simulation())
        dao.insert_spins(db, _spins(sim_id, nets=(50, -20, 30)))
        stats = dao.get_spins_stats(db, sim_id)
        assert stats['totalSpins'] == 3
        assert stats['firstSpin'] == 1
        assert stats['lastSpin'] == 3
        assert stats['minEarnings'] == 30
        assert stats['maxEarnings'] == 60
        assert stats['avgNetResult'] == pytest.approx(20)

    def test_stats_without_spins(self, db):
        sim_id = dao.create_simulation(db, _simulation())
        stats = dao.get_spins_stats(db, sim_id)
        assert stats['totalSpins'] == 0
        assert stats['avgNetResult'] is None


class TestSaveSimulation:
    def test_results_become_spins(self, db):
        body = _simulation(results=[
            {'spin': 1, 'drawnNumber': 17, 'spinNetResult': 50, 'cumulativeEarnings': 50},
            {'drawnNumber': 3},
        ])
        sim_id = dao.save_simulation(db, body)
        data = dao.get_simulation_with_spins(db, sim_id)
        assert [s['spinNumber'] for s in data['spins']] == [1, 2]
        second = data['spins'][1]
        assert second['spinNetResult'] == 0
        assert second['cumulativeEarnings'] == 0
        assert second['raw'] == {'drawnNumber': 3}

    def test_without_results(self, db):
        sim_id = dao.save_simulation(db, _simulation())
        assert dao.get_simulation_with_spins(db, sim_id)['spins'] == []


class TestUsers:
    def test_get_user(self, db):
        db.run("INSERT INTO users (uid, email, displayName) VALUES (?, ?, ?)",
               ('abc', 'a@b.c', 'Abc'))
        assert dao.get_user(db, 'abc')['displayName'] == 'Abc'
        assert dao.get_user(db, 'missing') is None
