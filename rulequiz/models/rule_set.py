"""
Rule set, version and rule models

Only the columns the quiz core reads are relevant here: scope resolution
uses the rule set slug and its current version, exports use rule numbers.
"""
from sqlalchemy import Column, String, Text, Boolean, Date, DateTime, ForeignKey
import uuid

from rulequiz.database import Base
from rulequiz.utils.date_range import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class RuleSet(Base):
    """
    Rule sets table - a named rules document (e.g. WFDF Rules of Ultimate)
    """
    __tablename__ = "rule_sets"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<RuleSet(slug={self.slug})>"


class Version(Base):
    """
    Versions table - dated revisions of a rule set, one flagged current
    """
    __tablename__ = "versions"

    id = Column(String(36), primary_key=True, default=_new_id)
    rule_set_id = Column(String(36), ForeignKey("rule_sets.id"), nullable=False, index=True)
    version_name = Column(String(100), nullable=False)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date)
    description = Column(Text)
    is_current = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Version(name={self.version_name}, current={self.is_current})>"


class Rule(Base):
    """
    Rules table - one numbered node of the rule tree
    """
    __tablename__ = "rules"

    id = Column(String(36), primary_key=True, default=_new_id)
    slug = Column(String(255), nullable=False)
    rule_set_id = Column(String(36), ForeignKey("rule_sets.id"), nullable=False)
    version_id = Column(String(36), ForeignKey("versions.id"), nullable=False, index=True)
    parent_rule_id = Column(String(36), ForeignKey("rules.id"))
    number = Column(String(20), nullable=False)  # "15.A.1"
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Rule(number={self.number})>"
