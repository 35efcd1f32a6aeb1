"""RevenueParty site toolkit: campaign targeting, assessments and portfolio refinement."""

__version__ = "0.1.0"
