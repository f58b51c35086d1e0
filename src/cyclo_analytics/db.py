import logging
import sqlite3
from datetime import date
from typing import List, Optional

import pandas as pd

from cyclo_analytics.models import AthleteProfile, parse_sex

logger = logging.getLogger(__name__)


def _iso_date(value) -> Optional[str]:
    if value is None or value == '':
        return None
    return pd.Timestamp(value).strftime('%Y-%m-%d')


def _to_date(value) -> Optional[date]:
    if not value:
        return None
    return pd.Timestamp(value).date()


class ProfileStore:
    """Athletes and their dated FTP/weight profile entries, stored in sqlite."""

    def __init__(self, db_path='athlete_profiles.db'):
        self.db_path = db_path
        self.create_tables()

    def get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        # Off by default in sqlite; profile entries cascade with their athlete
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def create_tables(self):
        with self.get_connection() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS athletes (
                    id TEXT PRIMARY KEY,
                    coach_id TEXT,
                    name TEXT,
                    birth_date TEXT,
                    sex TEXT CHECK (sex IN ('M', 'F') OR sex IS NULL)
                )
            ''')
            conn.execute('''
                CREATE TABLE IF NOT EXISTS athlete_profile_entries (
                    athlete_id TEXT NOT NULL REFERENCES athletes(id) ON DELETE CASCADE,
                    effective_date TEXT NOT NULL,  -- YYYY-MM-DD
                    ftp_watts REAL CHECK (ftp_watts IS NULL OR ftp_watts > 0),
                    weight_kg REAL CHECK (weight_kg IS NULL OR weight_kg > 0),
                    PRIMARY KEY (athlete_id, effective_date)
                )
            ''')

    def upsert_athlete(self, athlete_id, coach_id=None, name=None, birth_date=None, sex=None):
        sex_value = parse_sex(sex)
        with self.get_connection() as conn:
            # An update in place keeps the athlete's profile entries
            conn.execute('''
                INSERT INTO athletes (id, coach_id, name, birth_date, sex)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    coach_id = excluded.coach_id,
                    name = excluded.name,
                    birth_date = excluded.birth_date,
                    sex = excluded.sex
            ''', (athlete_id, coach_id, name, _iso_date(birth_date), sex_value.value if sex_value else None))

    def delete_athlete(self, athlete_id):
        """Remove an athlete together with all of their profile entries."""
        with self.get_connection() as conn:
            conn.execute("DELETE FROM athletes WHERE id = ?", (athlete_id,))

    def upsert_profile_entry(self, athlete_id, effective_date, ftp_watts=None, weight_kg=None):
        """One entry per athlete and day; a second save on the same day replaces it."""
        with self.get_connection() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO athlete_profile_entries (athlete_id, effective_date, ftp_watts, weight_kg)
                VALUES (?, ?, ?, ?)
            ''', (athlete_id, _iso_date(effective_date), ftp_watts, weight_kg))

    def delete_profile_entry(self, athlete_id, effective_date):
        with self.get_connection() as conn:
            conn.execute(
                "DELETE FROM athlete_profile_entries WHERE athlete_id = ? AND effective_date = ?",
                (athlete_id, _iso_date(effective_date)),
            )

    def get_profile_entries(self, athlete_id) -> List[AthleteProfile]:
        """All entries for an athlete, newest first."""
        with self.get_connection() as conn:
            rows = conn.execute('''
                SELECT e.effective_date, e.ftp_watts, e.weight_kg, a.birth_date, a.sex
                FROM athlete_profile_entries e
                JOIN athletes a ON a.id = e.athlete_id
                WHERE e.athlete_id = ?
                ORDER BY e.effective_date DESC
            ''', (athlete_id,)).fetchall()
            return [self._row_to_profile(row) for row in rows]

    def get_profile_as_of(self, athlete_id, as_of_date, coach_id=None) -> Optional[AthleteProfile]:
        """
        Most recent entry with effective_date <= as_of_date.

        When coach_id is given, athletes belonging to another coach are invisible.
        """
        query = '''
            SELECT e.effective_date, e.ftp_watts, e.weight_kg, a.birth_date, a.sex
            FROM athlete_profile_entries e
            JOIN athletes a ON a.id = e.athlete_id
            WHERE e.athlete_id = ? AND e.effective_date <= ?
        '''
        params = [athlete_id, _iso_date(as_of_date)]
        if coach_id is not None:
            query += " AND a.coach_id = ?"
            params.append(coach_id)
        query += " ORDER BY e.effective_date DESC LIMIT 1"

        with self.get_connection() as conn:
            row = conn.execute(query, params).fetchone()
            if row is None:
                logger.debug("No profile entry for athlete %s as of %s", athlete_id, as_of_date)
                return None
            return self._row_to_profile(row)

    @staticmethod
    def _row_to_profile(row) -> AthleteProfile:
        return AthleteProfile(
            weight_kg=row['weight_kg'],
            ftp_watts=row['ftp_watts'],
            birth_date=_to_date(row['birth_date']),
            sex=parse_sex(row['sex']),
            effective_date=_to_date(row['effective_date']),
        )
