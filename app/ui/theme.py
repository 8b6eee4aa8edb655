from types import SimpleNamespace

theme = SimpleNamespace(
    BACKGROUND_TOP='#141A26',
    BACKGROUND_BOTTOM='#101520',
    GRID='#2A2E39',
    TEXT='#B2B5BE',
    LINE='#8884d8',
    ERROR='#EF5350',
)
