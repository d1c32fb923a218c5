# Bot Names
TRADING_BOT_NAME = "SmartTradingBot"
CONTROL_SERVER_NAME = "ControlServer"

# Control Message Types
MSG_TYPE_START = "START"
MSG_TYPE_STOP = "STOP"
MSG_TYPE_RESET = "RESET"
MSG_TYPE_STATUS = "STATUS"
MSG_TYPE_CONNECT_BROKER = "CONNECT_BROKER"
MSG_TYPE_ERROR = "ERROR"

# Close Reasons
CLOSE_REASON_STOP_TARGET = "stop/target hit"
CLOSE_REASON_TIME_LIMIT = "time limit reached"
CLOSE_REASON_REVERSAL = "signal reversal"
CLOSE_REASON_RISK = "risk escalation"
CLOSE_REASON_CONFIDENCE = "confidence decay"
CLOSE_REASON_MANUAL = "manual stop"

# Broker Names
BROKER_PAPER = "paper"
BROKER_BINANCE = "binance"

# Order Sides
ORDER_SIDE_BUY = "BUY"
ORDER_SIDE_SELL = "SELL"

# Metrics
SMART_METRICS_EVERY = 5  # trades
