"""Race calendar — filter, group and map a static catalog of road and trail races."""
