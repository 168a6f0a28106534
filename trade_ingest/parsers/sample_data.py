"""Template export shown to users who want to see an accepted CSV layout."""

from __future__ import annotations

SAMPLE_HEADERS = [
    "Symbol", "Side", "Entry Price", "Exit Price", "Entry Date", "Exit Date",
    "Quantity", "PnL", "Commission", "Stop Loss", "Take Profit", "Strategy",
    "Broker", "Account", "Instrument Type", "Notes",
]

# Covers long/short and buy/sell sides, ISO with and without offset,
# US slash dates, a Unix-milliseconds timestamp and an open position.
_SAMPLE_ROWS = [
    "AAPL,long,150.50,155.75,2024-01-15 09:30:00,2024-01-15 15:45:00,100,525.00,9.99,148.00,160.00,Momentum,TD Ameritrade,Main,stock,Strong earnings play",
    "BTCUSD,short,45000,44500,2024-01-16T14:00:00Z,2024-01-16T18:30:00Z,0.5,250.00,5.00,46000,43000,Breakout,Binance,Spot,crypto,Resistance rejection",
    "EURUSD,buy,1.0850,1.0920,01/17/2024 08:15:00,,10000,70.00,2.50,1.0800,1.1000,Trend Follow,OANDA,Demo,forex,ECB decision",
    "TSLA,sell,250.00,245.00,2024-01-18 10:00:00,2024-01-18 14:30:00,50,250.00,4.99,255.00,240.00,Mean Reversion,Robinhood,Cash,stock,Overbought bounce",
    "ETHUSD,long,2500,2650,1705680000000,,2,300.00,3.00,2400,2800,DCA,Coinbase,Main,crypto,Weekly DCA entry",
    "NVDA,short,500.00,,2024-01-19 11:00:00,,25,,,510.00,480.00,Swing,Fidelity,IRA,stock,Open short position",
    "SPY,short,480.00,475.00,2024-01-20 09:35:00,2024-01-20 15:50:00,100,500.00,1.00,485.00,470.00,Day Trade,Interactive Brokers,Margin,stock,Short covered at fill price",
]


def generate_sample_csv() -> str:
    """Return the sample export as CSV text (no trailing newline)."""
    return "\n".join([",".join(SAMPLE_HEADERS), *_SAMPLE_ROWS])
