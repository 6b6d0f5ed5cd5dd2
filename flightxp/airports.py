# airports.py
# ---------------------------------------------------------------------
# Static airport reference table. Covers the big hubs on every inhabited
# continent; extend _ROWS freely, the lookups never need to change.

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .models import Airport, AirportRef

# iata, icao, name, city, country, continent, lat, lon, elevation_ft, tz, aliases
_ROWS: List[Tuple] = [
    # ==== INDIA ====
    ("BOM", "VABB", "Chhatrapati Shivaji Maharaj International", "Mumbai", "IN", "Asia", 19.0896, 72.8656, 39, "Asia/Kolkata", ("Bombay",)),
    ("BLR", "VOBL", "Kempegowda International", "Bengaluru", "IN", "Asia", 13.1989, 77.7068, 3000, "Asia/Kolkata", ("Bangalore",)),
    ("DEL", "VIDP", "Indira Gandhi International", "New Delhi", "IN", "Asia", 28.5562, 77.1000, 777, "Asia/Kolkata", ("Delhi",)),
    ("MAA", "VOMM", "Chennai International", "Chennai", "IN", "Asia", 12.9941, 80.1709, 52, "Asia/Kolkata", ("Madras",)),
    ("CCU", "VECC", "Netaji Subhas Chandra Bose International", "Kolkata", "IN", "Asia", 22.6547, 88.4467, 16, "Asia/Kolkata", ("Calcutta",)),
    ("HYD", "VOHS", "Rajiv Gandhi International", "Hyderabad", "IN", "Asia", 17.2403, 78.4294, 2024, "Asia/Kolkata", ()),
    ("COK", "VOCI", "Cochin International", "Kochi", "IN", "Asia", 10.1520, 76.4019, 30, "Asia/Kolkata", ("Cochin",)),
    ("GOI", "VOGO", "Dabolim", "Goa", "IN", "Asia", 15.3808, 73.8314, 150, "Asia/Kolkata", ()),
    ("AMD", "VAAH", "Sardar Vallabhbhai Patel International", "Ahmedabad", "IN", "Asia", 23.0772, 72.6347, 189, "Asia/Kolkata", ()),
    ("PNQ", "VAPO", "Pune", "Pune", "IN", "Asia", 18.5821, 73.9197, 1942, "Asia/Kolkata", ("Poona",)),
    # ==== MIDDLE EAST ====
    ("DXB", "OMDB", "Dubai International", "Dubai", "AE", "Asia", 25.2532, 55.3657, 62, "Asia/Dubai", ()),
    ("AUH", "OMAA", "Zayed International", "Abu Dhabi", "AE", "Asia", 24.4330, 54.6511, 88, "Asia/Dubai", ()),
    ("DOH", "OTHH", "Hamad International", "Doha", "QA", "Asia", 25.2731, 51.6081, 13, "Asia/Qatar", ()),
    ("IST", "LTFM", "Istanbul", "Istanbul", "TR", "Europe", 41.2753, 28.7519, 325, "Europe/Istanbul", ()),
    # ==== EAST / SOUTHEAST ASIA ====
    ("SIN", "WSSS", "Changi", "Singapore", "SG", "Asia", 1.3644, 103.9915, 22, "Asia/Singapore", ()),
    ("HKG", "VHHH", "Hong Kong International", "Hong Kong", "HK", "Asia", 22.3080, 113.9185, 28, "Asia/Hong_Kong", ()),
    ("NRT", "RJAA", "Narita International", "Tokyo", "JP", "Asia", 35.7720, 140.3929, 141, "Asia/Tokyo", ()),
    ("HND", "RJTT", "Haneda", "Tokyo", "JP", "Asia", 35.5494, 139.7798, 35, "Asia/Tokyo", ()),
    ("ICN", "RKSI", "Incheon International", "Seoul", "KR", "Asia", 37.4602, 126.4407, 23, "Asia/Seoul", ()),
    ("PEK", "ZBAA", "Beijing Capital International", "Beijing", "CN", "Asia", 40.0799, 116.6031, 116, "Asia/Shanghai", ("Peking",)),
    ("PVG", "ZSPD", "Shanghai Pudong International", "Shanghai", "CN", "Asia", 31.1443, 121.8083, 13, "Asia/Shanghai", ()),
    ("BKK", "VTBS", "Suvarnabhumi", "Bangkok", "TH", "Asia", 13.6900, 100.7501, 5, "Asia/Bangkok", ()),
    ("KUL", "WMKK", "Kuala Lumpur International", "Kuala Lumpur", "MY", "Asia", 2.7456, 101.7099, 69, "Asia/Kuala_Lumpur", ()),
    ("CGK", "WIII", "Soekarno-Hatta International", "Jakarta", "ID", "Asia", -6.1256, 106.6559, 34, "Asia/Jakarta", ()),
    ("MNL", "RPLL", "Ninoy Aquino International", "Manila", "PH", "Asia", 14.5086, 121.0194, 75, "Asia/Manila", ()),
    # ==== EUROPE ====
    ("LHR", "EGLL", "Heathrow", "London", "GB", "Europe", 51.4700, -0.4543, 83, "Europe/London", ()),
    ("LGW", "EGKK", "Gatwick", "London", "GB", "Europe", 51.1537, -0.1821, 202, "Europe/London", ()),
    ("CDG", "LFPG", "Charles de Gaulle", "Paris", "FR", "Europe", 49.0097, 2.5479, 392, "Europe/Paris", ()),
    ("FRA", "EDDF", "Frankfurt am Main", "Frankfurt", "DE", "Europe", 50.0379, 8.5622, 364, "Europe/Berlin", ()),
    ("MUC", "EDDM", "Munich", "Munich", "DE", "Europe", 48.3537, 11.7750, 1487, "Europe/Berlin", ("Munchen",)),
    ("AMS", "EHAM", "Schiphol", "Amsterdam", "NL", "Europe", 52.3105, 4.7683, -11, "Europe/Amsterdam", ()),
    ("MAD", "LEMD", "Adolfo Suarez Madrid-Barajas", "Madrid", "ES", "Europe", 40.4983, -3.5676, 2001, "Europe/Madrid", ()),
    ("BCN", "LEBL", "Josep Tarradellas Barcelona-El Prat", "Barcelona", "ES", "Europe", 41.2974, 2.0833, 12, "Europe/Madrid", ()),
    ("FCO", "LIRF", "Leonardo da Vinci-Fiumicino", "Rome", "IT", "Europe", 41.8003, 12.2389, 13, "Europe/Rome", ()),
    ("ZRH", "LSZH", "Zurich", "Zurich", "CH", "Europe", 47.4582, 8.5555, 1416, "Europe/Zurich", ()),
    ("CPH", "EKCH", "Copenhagen", "Copenhagen", "DK", "Europe", 55.6180, 12.6508, 17, "Europe/Copenhagen", ()),
    ("DUB", "EIDW", "Dublin", "Dublin", "IE", "Europe", 53.4264, -6.2499, 242, "Europe/Dublin", ()),
    # ==== NORTH AMERICA ====
    ("JFK", "KJFK", "John F. Kennedy International", "New York", "US", "North America", 40.6413, -73.7781, 13, "America/New_York", ()),
    ("EWR", "KEWR", "Newark Liberty International", "Newark", "US", "North America", 40.6895, -74.1745, 18, "America/New_York", ()),
    ("BOS", "KBOS", "Logan International", "Boston", "US", "North America", 42.3656, -71.0096, 20, "America/New_York", ()),
    ("ATL", "KATL", "Hartsfield-Jackson Atlanta International", "Atlanta", "US", "North America", 33.6407, -84.4277, 1026, "America/New_York", ()),
    ("MIA", "KMIA", "Miami International", "Miami", "US", "North America", 25.7959, -80.2870, 8, "America/New_York", ()),
    ("ORD", "KORD", "O'Hare International", "Chicago", "US", "North America", 41.9742, -87.9073, 672, "America/Chicago", ()),
    ("DFW", "KDFW", "Dallas/Fort Worth International", "Dallas", "US", "North America", 32.8998, -97.0403, 607, "America/Chicago", ()),
    ("DEN", "KDEN", "Denver International", "Denver", "US", "North America", 39.8561, -104.6737, 5431, "America/Denver", ()),
    ("LAX", "KLAX", "Los Angeles International", "Los Angeles", "US", "North America", 33.9416, -118.4085, 125, "America/Los_Angeles", ()),
    ("SFO", "KSFO", "San Francisco International", "San Francisco", "US", "North America", 37.6213, -122.3790, 13, "America/Los_Angeles", ()),
    ("SEA", "KSEA", "Seattle-Tacoma International", "Seattle", "US", "North America", 47.4502, -122.3088, 433, "America/Los_Angeles", ()),
    ("YYZ", "CYYZ", "Toronto Pearson International", "Toronto", "CA", "North America", 43.6777, -79.6248, 569, "America/Toronto", ()),
    ("YVR", "CYVR", "Vancouver International", "Vancouver", "CA", "North America", 49.1967, -123.1815, 14, "America/Vancouver", ()),
    ("MEX", "MMMX", "Benito Juarez International", "Mexico City", "MX", "North America", 19.4361, -99.0719, 7316, "America/Mexico_City", ()),
    # ==== SOUTH AMERICA ====
    ("GRU", "SBGR", "Guarulhos International", "São Paulo", "BR", "South America", -23.4356, -46.4731, 2459, "America/Sao_Paulo", ("Sao Paulo",)),
    ("GIG", "SBGL", "Galeao International", "Rio de Janeiro", "BR", "South America", -22.8090, -43.2506, 28, "America/Sao_Paulo", ()),
    ("EZE", "SAEZ", "Ministro Pistarini International", "Buenos Aires", "AR", "South America", -34.8222, -58.5358, 67, "America/Argentina/Buenos_Aires", ()),
    ("SCL", "SCEL", "Arturo Merino Benitez International", "Santiago", "CL", "South America", -33.3930, -70.7858, 1555, "America/Santiago", ()),
    ("BOG", "SKBO", "El Dorado International", "Bogotá", "CO", "South America", 4.7016, -74.1469, 8361, "America/Bogota", ("Bogota",)),
    ("LIM", "SPJC", "Jorge Chavez International", "Lima", "PE", "South America", -12.0219, -77.1143, 113, "America/Lima", ()),
    # ==== AFRICA ====
    ("JNB", "FAOR", "O. R. Tambo International", "Johannesburg", "ZA", "Africa", -26.1392, 28.2460, 5558, "Africa/Johannesburg", ()),
    ("CPT", "FACT", "Cape Town International", "Cape Town", "ZA", "Africa", -33.9715, 18.6021, 151, "Africa/Johannesburg", ()),
    ("CAI", "HECA", "Cairo International", "Cairo", "EG", "Africa", 30.1219, 31.4056, 382, "Africa/Cairo", ()),
    ("ADD", "HAAB", "Bole International", "Addis Ababa", "ET", "Africa", 8.9779, 38.7993, 7625, "Africa/Addis_Ababa", ()),
    ("NBO", "HKJK", "Jomo Kenyatta International", "Nairobi", "KE", "Africa", -1.3192, 36.9278, 5327, "Africa/Nairobi", ()),
    ("LOS", "DNMM", "Murtala Muhammed International", "Lagos", "NG", "Africa", 6.5774, 3.3212, 135, "Africa/Lagos", ()),
    # ==== OCEANIA ====
    ("SYD", "YSSY", "Kingsford Smith", "Sydney", "AU", "Oceania", -33.9399, 151.1753, 21, "Australia/Sydney", ()),
    ("MEL", "YMML", "Melbourne", "Melbourne", "AU", "Oceania", -37.6690, 144.8410, 434, "Australia/Melbourne", ()),
    ("AKL", "NZAA", "Auckland", "Auckland", "NZ", "Oceania", -37.0082, 174.7850, 23, "Pacific/Auckland", ()),
]

AIRPORTS: Dict[str, Airport] = {}
_BY_ICAO: Dict[str, Airport] = {}
_BY_CITY: Dict[str, List[Airport]] = {}

for _row in _ROWS:
    _ap = Airport(
        iata=_row[0],
        icao=_row[1],
        name=_row[2],
        city=_row[3],
        country=_row[4],
        continent=_row[5],
        lat=_row[6],
        lon=_row[7],
        elevation_ft=_row[8],
        timezone=_row[9],
        aliases=_row[10],
    )
    AIRPORTS[_ap.iata] = _ap
    _BY_ICAO[_ap.icao] = _ap
    for _name in (_ap.city, *_ap.aliases):
        _BY_CITY.setdefault(_name.lower(), []).append(_ap)


def all_airports() -> List[Airport]:
    return list(AIRPORTS.values())


def get_airport(code: Optional[str]) -> Optional[Airport]:
    """Look up by IATA (3 letters) or ICAO (4 letters); None when unknown."""
    if not code:
        return None
    c = code.strip().upper()
    if len(c) == 3:
        return AIRPORTS.get(c)
    if len(c) == 4:
        return _BY_ICAO.get(c)
    return None


def is_known_airport(code: Optional[str]) -> bool:
    return get_airport(code) is not None


def airports_for_city(city: str) -> List[Airport]:
    """All airports serving a city name or alias (case-insensitive), table order."""
    return list(_BY_CITY.get(city.strip().lower(), []))


def city_names() -> List[str]:
    """Known city names and aliases, longest first so multi-word names match before substrings."""
    return sorted(_BY_CITY.keys(), key=len, reverse=True)


def airport_ref(code: Optional[str]) -> Optional[AirportRef]:
    """Reference-backed AirportRef for a known code; None for anything the table rejects."""
    ap = get_airport(code)
    if ap is None:
        return None
    return ref_from_airport(ap)


def ref_from_airport(ap: Airport) -> AirportRef:
    return AirportRef(
        iata=ap.iata,
        icao=ap.icao,
        name=ap.name,
        city=ap.city,
        country=ap.country,
        continent=ap.continent,
        timezone=ap.timezone,
        lat=ap.lat,
        lon=ap.lon,
        validated=True,
    )


def resolve_airport_ref(
    iata: Optional[str] = None,
    icao: Optional[str] = None,
    *,
    name: Optional[str] = None,
    city: Optional[str] = None,
    country: Optional[str] = None,
    timezone: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
) -> Optional[AirportRef]:
    """
    Endpoint as reported by a structured provider.
    Reference table wins when it knows the code; otherwise keep the provider's
    own coordinates (unvalidated). None when there is no usable IATA code.
    """
    known = airport_ref(iata) or airport_ref(icao)
    if known:
        return known
    code = (iata or "").strip().upper()
    if len(code) != 3 or not code.isalpha():
        return None
    return AirportRef(
        iata=code,
        icao=(icao or None),
        name=name,
        city=city,
        country=country,
        timezone=timezone,
        lat=lat,
        lon=lon,
        validated=False,
    )
