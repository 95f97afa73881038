"""Schedule database and conflict detection shared by the fleet."""
