"""Database models.

All SQLAlchemy models are imported here so they are registered when the app starts.
"""

from parish.models.activity import Activity
from parish.models.family import Family
from parish.models.member import Member
from parish.models.sacrament import Sacrament
from parish.models.tithe import Tithe

__all__ = ["Activity", "Family", "Member", "Sacrament", "Tithe"]
