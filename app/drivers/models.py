from pydantic import BaseModel

from app.geo import Location


class Driver(BaseModel):
    """A truck driver the service searches and negotiates for.

    Drivers are managed outside this service; we only read them.
    """

    driver_id: str  # e.g. "DRIVER-001"
    name: str = ""
    home_base: Location  # Where backhaul searches aim to end
    current_location: Location  # Origin of the first deadhead hop
    equipment: str = ""  # Truck type, e.g. "Dry Van"
    min_rate: float  # Lowest $/mile the driver will accept
