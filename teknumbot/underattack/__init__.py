"""Under-attack mode: its stored state and the admin commands that switch it."""