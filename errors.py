"""
Error taxonomy for the Best Price Planner.

- InvalidRequestError: bad requested item list (raised before any search)
- VendorCapacityError: more vendors than the vendor bit set supports
- MalformedCatalogError: unparsable price or malformed inventory entry
- SearchTimeoutError: caller-imposed deadline expired during search
- ReconstructionError: replay could not reproduce the optimal plan

An infeasible request (some item stocked nowhere) is NOT an error: it is
reported through SolverResult.status.
"""


class BestPriceError(Exception):
    """Base class for all planner errors."""


class InvalidRequestError(BestPriceError, ValueError):
    """Requested item list is empty, has duplicates, or is too large."""


class VendorCapacityError(BestPriceError, ValueError):
    """Catalog has more distinct vendors than the vendor mask supports."""

    def __init__(self, vendor_count: int, max_vendors: int):
        self.vendor_count = vendor_count
        self.max_vendors = max_vendors
        super().__init__(
            f"Catalog has {vendor_count} vendors but at most {max_vendors} are supported"
        )


class MalformedCatalogError(BestPriceError, ValueError):
    """A catalog entry could not be parsed."""


class SearchTimeoutError(BestPriceError, RuntimeError):
    """Search exceeded its time limit."""


class ReconstructionError(BestPriceError, RuntimeError):
    """No assignment reaches the reported optimum."""
