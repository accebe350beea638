# config.py
import os

# ======= Packer attempt budget =======
MAX_ATTEMPTS      = int(os.getenv("GS_MAX_ATTEMPTS", "1200"))
DESIRED_SOLUTIONS = int(os.getenv("GS_DESIRED_SOLUTIONS", "1"))

# ======= Search caps =======
# Node limit is per attempt; MAX_SECONDS caps a whole run (0 disables it).
NODE_LIMIT  = int(os.getenv("GS_NODE_LIMIT", "200000"))
MAX_SECONDS = float(os.getenv("GS_MAX_SECONDS", "0"))

# ======= Randomization =======
# Empty seed means the system RNG, so repeated requests offer variety.
RANDOM_SEED        = os.getenv("GS_RANDOM_SEED", "").strip()
SHUFFLE_CAPACITIES = int(os.getenv("GS_SHUFFLE_CAPACITIES", "1")) != 0

# ======= CP-SAT rescue (runs once after the attempt budget is spent) =======
CP_SAT_RESCUE  = int(os.getenv("GS_CP_SAT_RESCUE", "1")) != 0
CP_SAT_SECONDS = float(os.getenv("GS_CP_SAT_SECONDS", "5"))
WORKERS        = int(os.getenv("GS_WORKERS", "1"))

# ======= Progress reporting =======
PROGRESS_EVERY = int(os.getenv("GS_PROGRESS_EVERY", "25"))

# ======= Output names =======
EXPORT_OUT = os.getenv("GS_EXPORT_OUT", "groupings.json")
TEXT_OUT   = os.getenv("GS_TEXT_OUT", "groupings.txt")


class CFG:
    MAX_ATTEMPTS      = MAX_ATTEMPTS
    DESIRED_SOLUTIONS = DESIRED_SOLUTIONS

    NODE_LIMIT  = NODE_LIMIT
    MAX_SECONDS = MAX_SECONDS

    RANDOM_SEED        = RANDOM_SEED
    SHUFFLE_CAPACITIES = SHUFFLE_CAPACITIES

    CP_SAT_RESCUE  = CP_SAT_RESCUE
    CP_SAT_SECONDS = CP_SAT_SECONDS
    WORKERS        = WORKERS

    PROGRESS_EVERY = PROGRESS_EVERY

    EXPORT_OUT = EXPORT_OUT
    TEXT_OUT   = TEXT_OUT


__all__ = ["CFG"]
