from sqlalchemy import Column, Integer, BigInteger
from funding.database import Base

LEDGER_ROW_ID = 1


class LedgerTotals(Base):
    __tablename__ = "ledger_totals"

    id = Column(Integer, primary_key=True)                      # always LEDGER_ROW_ID
    left = Column("left_total", BigInteger, nullable=False, default=0)
    right = Column("right_total", BigInteger, nullable=False, default=0)
    last_updated = Column(BigInteger, nullable=False)           # epoch milliseconds
