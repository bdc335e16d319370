"""Domain layer for finledger application.

Services are imported from their own modules (``finledger.domain.account``,
``finledger.domain.transaction``, ...). They depend on ``finledger.database``,
which in turn imports ``finledger.domain.entities``, so this package does not
re-export them.
"""
