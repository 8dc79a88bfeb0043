"""Match incoming packets to the processes that own their destination ports."""

__version__ = "0.1.0"