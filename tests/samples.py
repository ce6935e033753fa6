"""
Sample Solution Outline documents shared by the tests.
"""

SCENARIO_A_OBJECTIVES = """\
# Objectives

## OBJ-01: Online booking
### In scope
- Online booking
### Out of scope
- Refunds
### Success criteria
- Customers can book online
"""

SCENARIO_A_REQUIREMENTS = """\
# Requirements

- BR-01: The system must let customers create an online booking. Traces to OBJ-01.
- BR-03: The system must support refund requests.
"""

SCENARIO_B_OBJECTIVES = """\
## OBJ-01: Self-service bookings
### In scope
- Online booking
- Booking cancellation
"""

SCENARIO_B_REQUIREMENTS = """\
- BR-01: Customers can create an online booking.
"""

SCENARIO_D_OBJECTIVES = """\
## OBJ-01: Customer portal
### In scope
- Self-service portal
"""

SCENARIO_D_REQUIREMENTS = """\
- BR-01: A client can open the self-service portal.
"""
