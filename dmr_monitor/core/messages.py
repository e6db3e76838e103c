from enum import IntEnum

FRAME_HEAD = 0x68
FRAME_TAIL = 0x10


class Direction(IntEnum):
    TO_HOST   = 0x00   # module -> host (reply)
    TO_DEVICE = 0x01   # host -> module
    UPLOAD    = 0x02   # module -> host (unsolicited)


class Command(IntEnum):
    SET_RX_VOLUME        = 0x02
    SIGNAL_CHECK         = 0x05
    CALL_STATUS          = 0x06
    ALARM                = 0x09
    SET_MIC_GAIN         = 0x0B
    SET_POWER_SAVING     = 0x0C
    INIT_STATUS          = 0x1A
    FIRMWARE_VERSION     = 0x25
    SET_LOCAL_ID         = 0x2A
    WAKE_UP              = 0x3E
    DEEP_SLEEP           = 0x42
    SET_ALARM_CONFIG     = 0x45
    REMOTE_MONITOR_TIME  = 0x48
    BAND_SWITCH          = 0x4C
    SET_SQUELCH          = 0x4D
    SERVICE_STATUS       = 0x59
    IN_BAND_DATA         = 0x60
    CALL_DETECTED        = 0x62
    SET_KEY              = 0x81
    SET_CHANNEL          = 0x82
    SET_GROUP_LIST       = 0x84
