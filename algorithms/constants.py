"""
Thresholds shared by the eligibility, status and matching algorithms.
Every date rule in the project reads its numbers from here.
"""

# Standard interval between two whole-blood donations
COOLING_PERIOD_DAYS = 90

# Minimum interval when an admin explicitly requests emergency eligibility
EMERGENCY_MIN_DAYS = 56

# No recorded activity for longer than this marks a donor inactive
INACTIVE_THRESHOLD_DAYS = 180

# Activity recency bands used by the match score
RECENT_ACTIVITY_DAYS = 30
ACTIVE_ACTIVITY_DAYS = 90

# Donors with more lifetime donations than this are "elite"
ELITE_DONATION_THRESHOLD = 5

# Radius of earth in kilometers
EARTH_RADIUS_KM = 6371

# Match score contributions
SCORE_EXACT_TYPE = 30
SCORE_VERIFIED = 25
SCORE_FIRST_TIME = 15
SCORE_ELIGIBLE = 20
SCORE_EMERGENCY_ELIGIBLE = 10
SCORE_RECENTLY_ACTIVE = 15
SCORE_ACTIVE = 10
SCORE_ELITE = 10
