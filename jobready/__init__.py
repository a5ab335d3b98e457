"""JobReady AI backend: CV generation, interview practice and career chat."""

__version__ = "0.1.0"
