"""Request authentication — account sessions and event tokens."""
