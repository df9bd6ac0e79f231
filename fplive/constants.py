"""Constants and mappings for the live scoring engine."""

# element_type id -> position code
POSITIONS = {
    1: 'GKP',
    2: 'DEF',
    3: 'MID',
    4: 'FWD',
}

# Minimum players per position in any valid starting eleven
FORMATION_MINIMUMS = {
    'GKP': 1,
    'DEF': 3,
    'MID': 2,
    'FWD': 1,
}

STARTING_SLOTS = 11
SQUAD_SIZE = 15

# Active chips as they appear in the picks feed
CHIP_WILDCARD = 'wildcard'
CHIP_FREE_HIT = 'freehit'
CHIP_BENCH_BOOST = 'bboost'
CHIP_TRIPLE_CAPTAIN = '3xc'
ALL_CHIPS = [CHIP_WILDCARD, CHIP_FREE_HIT, CHIP_BENCH_BOOST, CHIP_TRIPLE_CAPTAIN]

CAPTAIN_MULTIPLIER = 2
TRIPLE_CAPTAIN_MULTIPLIER = 3

# Bonus awarded by BPS rank
BONUS_BY_RANK = {1: 3, 2: 2, 3: 1}

# Ordering of events detected within the same poll
EVENT_PRIORITY = {
    'goal': 1,
    'assist': 2,
    'pen_save': 3,
    'pen_miss': 4,
    'own_goal': 5,
    'red': 6,
    'yellow': 7,
    'clean_sheet': 8,
    'goals_conceded': 9,
    'saves': 10,
    'bonus': 11,
    'bonus_change': 11,
    'defcon': 12,
}

# Fixture stat identifier -> event type, one event per unit
DIRECT_STAT_EVENTS = {
    'goals_scored': 'goal',
    'assists': 'assist',
    'penalties_saved': 'pen_save',
    'penalties_missed': 'pen_miss',
    'own_goals': 'own_goal',
    'red_cards': 'red',
    'yellow_cards': 'yellow',
}

GOAL_POINTS = {'GKP': 10, 'DEF': 6, 'MID': 5, 'FWD': 4}
CLEAN_SHEET_POINTS = {'GKP': 4, 'DEF': 4, 'MID': 1, 'FWD': 0}
EVENT_POINTS = {
    'assist': 3,
    'pen_save': 5,
    'pen_miss': -2,
    'own_goal': -2,
    'red': -3,
    'yellow': -1,
    'saves': 1,
    'goals_conceded': -1,
    'defcon': 2,
}

SAVES_PER_POINT = 3
GOALS_CONCEDED_PER_POINT = 2
CLEAN_SHEET_MINUTES = 60

# Change-detector event types
BONUS_CHANGE = 'bonus_change'
CS_LOST = 'cs_lost'
DEFCON_GAINED = 'defcon_gained'

MAX_CHANGE_EVENTS = 50
MAX_TIMELINE_EVENTS = 500

UNKNOWN_NAME = 'Unknown'
