from abc import ABC, abstractmethod


class HolidayCalendarPort(ABC):
    @abstractmethod
    def is_holiday(self, clinic_id: str, day: str) -> bool:
        """Check if the date (YYYY-MM-DD) is a holiday for the clinic."""
        raise NotImplementedError
