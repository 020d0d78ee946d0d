from enum import Enum, auto

class EventType(Enum):
    NODE_START = auto()            # Protocol instance goes from stopped to running
    HELLO_TIMER = auto()           # Periodic HELLO timer expires
    SEND_PACKET = auto()           # Jittered transmission of one flooding packet
    RECEPTION = auto()             # Node receives a packet from the channel
    LOCALIZATION_REPORT = auto()   # Periodic localization error sample
    ROUTES_DUMP = auto()           # Write routing tables of every node
    DISTANCES_DUMP = auto()        # Write distance tables of every node
