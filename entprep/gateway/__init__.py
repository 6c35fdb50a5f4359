"""
Data Gateway

Routes auth, tests and analytics operations to the remote data service or the
local key-value store, per service.
"""

from entprep.gateway.endpoints import ENDPOINTS, Endpoint, EndpointKind, get_endpoint
from entprep.gateway.gateway import DataGateway, DataSource, GatewayRequest, GatewayResponse
from entprep.gateway.local import LocalDataSource, load_reference_data
from entprep.gateway.remote import RemoteCallClient
from entprep.gateway.routing import SERVICES, ServiceRoute, ServiceRoutingConfig

__all__ = [
    'ENDPOINTS',
    'Endpoint',
    'EndpointKind',
    'get_endpoint',
    'DataGateway',
    'DataSource',
    'GatewayRequest',
    'GatewayResponse',
    'LocalDataSource',
    'load_reference_data',
    'RemoteCallClient',
    'SERVICES',
    'ServiceRoute',
    'ServiceRoutingConfig',
]
