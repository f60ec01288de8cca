"""Application constants and fixed value lists."""

API_TITLE = "Parish Registry API"
API_DESCRIPTION = (
    "Parish membership management: members, families, sacraments, tithes, "
    "activities, CSV import/export and reporting."
)

GENDERS = ("Male", "Female")

MEMBERSHIP_STATUSES = ("active", "inactive", "transferred", "deceased")

MATRIMONY_STATUSES = ("single", "married", "widowed", "separated", "divorced")

MARRIAGE_TYPES = ("customary", "church", "civil", "both")

LOCAL_CHURCHES = (
    "St James Kangemi",
    "St Veronica Pembe Tatu",
    "Our Lady of Consolata Cathedral",
    "St Peter Kiawara",
    "Sacred Heart Kandara",
)

# Short names accepted by the CSV import
LOCAL_CHURCH_ALIASES = {
    "kangemi": "St James Kangemi",
    "pembe tatu": "St Veronica Pembe Tatu",
    "cathedral": "Our Lady of Consolata Cathedral",
    "kiawara": "St Peter Kiawara",
    "kandara": "Sacred Heart Kandara",
}

CHURCH_GROUPS = (
    "PMC",
    "Youth",
    "Young Parents",
    "C.W.A",
    "CMA",
    "Choir",
    "Catholic Action",
    "Pioneer",
)

OCCUPATIONS = ("employed", "self_employed", "not_employed")

EDUCATION_LEVELS = (
    "none",
    "primary",
    "kcpe",
    "secondary",
    "kcse",
    "certificate",
    "diploma",
    "degree",
    "masters",
    "phd",
    "other",
)

SACRAMENT_TYPES = ("baptism", "confirmation", "marriage")

TITHE_TYPES = (
    "tithe",
    "offering",
    "special_collection",
    "donation",
    "thanksgiving",
    "project_contribution",
)

PAYMENT_METHODS = ("cash", "check", "mobile_money", "bank_transfer", "card")

ACTIVITY_TYPES = (
    "mass",
    "meeting",
    "event",
    "workshop",
    "retreat",
    "social",
    "fundraising",
    "community_service",
    "youth",
    "choir",
    "prayer",
    "celebration",
)

ACTIVITY_STATUSES = ("planned", "active", "completed", "cancelled", "postponed")

# Inclusive lower bound, exclusive upper bound in years
AGE_GROUPS = {
    "children": (0, 18),
    "youth": (18, 30),
    "adults": (30, 60),
    "seniors": (60, None),
}
