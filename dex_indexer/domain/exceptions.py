from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class NetworkConfigError(DomainError):
    """Network configuration file is missing or invalid."""


class NetworkNotFoundError(DomainError):
    """Requested chain is not registered."""


class UnreachableTokenError(DomainError):
    """No path connects the token to the target token on this chain."""


class MissingHopPriceError(DomainError):
    """A pool on the resolved path has no usable spot price."""


class InvalidComposedPriceError(DomainError):
    """Composed price is zero, negative or not finite."""


class ChainSourceError(DomainError):
    """Chain data source (subgraph or RPC) could not be queried."""


class PriceStoreError(DomainError):
    """Price series or token storage failed."""


class PriceQueryInputError(DomainError):
    """Invalid parameters for a price read."""


class PriceNotFoundError(DomainError):
    """No stored price for the requested token."""
