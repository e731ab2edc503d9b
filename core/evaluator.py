from .models import Classification, Reading, TemperatureRange


def classify(reading: Reading, temp_range: TemperatureRange) -> Classification:
    """Classify a reading against the band; both bounds count as in range"""
    if temp_range.contains(reading.value):
        return Classification.IN_RANGE
    return Classification.OUT_OF_RANGE


def in_range_predicate(temp_range: TemperatureRange):
    """Build a store predicate matching readings inside the band"""
    def predicate(reading: Reading) -> bool:
        return classify(reading, temp_range) is Classification.IN_RANGE
    return predicate
