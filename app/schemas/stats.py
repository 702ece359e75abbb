from typing import Dict, Optional

from pydantic import BaseModel


class DashboardStats(BaseModel):
    """Counts shown on the caller's dashboard."""
    role: str
    counts: Dict[str, int]
    # Platform-wide totals, admins only
    platform: Optional[Dict[str, int]] = None
