"""Constants and mappings for lineup management calculations."""

# Canonical offensive / defensive positions
OFFENSIVE_POSITIONS = ('QB', 'RB', 'WR', 'TE', 'K')
DEFENSIVE_POSITIONS = ('DL', 'LB', 'DB')
ALL_STAT_POSITIONS = OFFENSIVE_POSITIONS + DEFENSIVE_POSITIONS

# Raw position synonyms -> canonical position
POSITION_SYNONYMS = {
    # Defensive line
    'DL': 'DL',
    'DE': 'DL',
    'DT': 'DL',
    'NT': 'DL',
    'EDGE': 'DL',
    'LE': 'DL',
    'RE': 'DL',
    # Linebackers
    'LB': 'LB',
    'OLB': 'LB',
    'MLB': 'LB',
    'ILB': 'LB',
    'SLB': 'LB',
    'WLB': 'LB',
    # Defensive backs
    'DB': 'DB',
    'CB': 'DB',
    'S': 'DB',
    'FS': 'DB',
    'SS': 'DB',
    'NB': 'DB',
    'DBS': 'DB',
    # Offense
    'QB': 'QB',
    'RB': 'RB',
    'WR': 'WR',
    'TE': 'TE',
    'K': 'K',
}

# Lineup tokens that never count as starting slots
NON_STARTING_SLOT_TOKENS = frozenset({
    'BN', 'BENCH', 'TAXI', 'TAXI_SLOT', 'TAXI-SLOT', 'TAXI SLOT',
    'IR', 'RESERVE', 'RESERVED', 'PUP', 'OUT',
})

# Flex slot aliases (uppercased tokens)
REGULAR_FLEX_SLOTS = frozenset({
    'FLEX', 'WRRB', 'WRRBTE', 'WRRB_TE', 'RBWR', 'RBWRTE',
    'WRRB_FLEX', 'REC_FLEX', 'WRRBTEFLEX',
})
SUPER_FLEX_SLOTS = frozenset({
    'SUPER_FLEX', 'SUPERFLEX', 'QBRBWRTE', 'QBRBWR', 'QBSF', 'SFLX',
})
IDP_FLEX_SLOTS = frozenset({
    'IDP', 'IDPFLEX', 'IDP_FLEX', 'DFLEX', 'DL_LB_DB', 'DL_LB', 'LB_DB', 'DL_DB', 'DP',
})

# Credited-position preference order for flex picks
OFFENSIVE_FLEX_PREFERENCE = ('QB', 'RB', 'WR', 'TE')
IDP_FLEX_PREFERENCE = ('DL', 'LB', 'DB')

# Starter id placeholder for an empty lineup slot
EMPTY_STARTER_ID = '0'

# Defaults used when engine_config.json is missing a value
DEFAULT_SCHEMA_VERSION = 5
DEFAULT_RECONCILIATION_TOLERANCE = 0.01
DEFAULT_PLAYOFF_START_WEEK = 14
DEFAULT_PLAYOFF_TEAMS = 4
DEFAULT_INFERRED_SLOT_CAP = 3
DEFAULT_MANAGEMENT_PERCENT_EPSILON = 0.5
DEFAULT_MAX_WORKERS = 4
DEFAULT_LEGACY_CACHE_PATTERNS = (
    'league_*.json',
    '*.cache',
    'all_time_cache.json',
    'old_standings.json',
)

# Store file names
LEAGUES_FILE = 'leagues.json'
SCHEMA_VERSION_FILE = 'schema_version.json'
PLAYERS_FILE = 'players.json'
