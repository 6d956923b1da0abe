"""Reference data gateways."""

from cashbook.gateways.base import ReferenceDataGateway
from cashbook.gateways.sql import SqlReferenceGateway

__all__ = ["ReferenceDataGateway", "SqlReferenceGateway"]
