"""
Query Models

A LedgerQuery describes a read over a record collection.
The QueryExecutor answers it deterministically from the records it is given;
nothing is estimated.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from noteledger.models.transaction import TransactionCategory, TransactionDirection


class LedgerQuery(BaseModel):
    """A structured read over the current transactions."""
    
    query_id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    
    query_type: str = Field(
        ...,
        pattern="^(list|aggregate|person|exists)$",
        description="Type of query to execute"
    )
    
    # Filters
    category_filter: Optional[TransactionCategory] = None
    direction_filter: Optional[TransactionDirection] = None
    person_filter: Optional[str] = Field(
        default=None,
        description="Counterparty name, matched case- and whitespace-insensitively"
    )
    date_filter: Optional[str] = Field(
        default=None,
        description="Short date as written on the note, e.g. '17 Jan'"
    )
    
    # For aggregations
    group_by: Optional[str] = Field(
        default=None,
        pattern="^(category|person|date)$"
    )
    
    limit: int = Field(
        default=50,
        ge=1,
        le=1000
    )


class QueryResult(BaseModel):
    """Result of executing a LedgerQuery."""
    
    query_id: UUID
    executed_at: datetime = Field(default_factory=datetime.utcnow)
    
    success: bool
    error_message: Optional[str] = None
    
    data_found: bool = Field(
        ...,
        description="Was any data found?"
    )
    result_count: int = Field(
        ge=0,
        description="Number of results"
    )
    results: list[dict] = Field(
        default_factory=list,
        description="Matching records as dicts"
    )
    aggregation_result: Optional[dict] = None
    query_description: str = Field(
        ...,
        description="Human-readable description of what was queried"
    )
