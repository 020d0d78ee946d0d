class DvHopError(Exception):
    """Base class for every recoverable protocol error."""


# Packet codec: the packet is dropped, the node carries on
class DecodeError(DvHopError):
    pass

class TruncatedPacket(DecodeError):
    pass

class MalformedAddress(DecodeError):
    pass


# Position estimator: the previous estimate is kept
class EstimationError(DvHopError):
    pass

class DegenerateGeometry(EstimationError):
    pass

class InsufficientBeacons(EstimationError):
    pass


# Route lookups at the protocol boundary
class RoutingError(DvHopError):
    pass

class NoInterfacesConfigured(RoutingError):
    pass

class NoRouteToHost(RoutingError):
    pass
