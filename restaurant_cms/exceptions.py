class RestaurantCMSException(Exception):
    """Base exception for Restaurant CMS package"""
    pass


class ConfigurationError(RestaurantCMSException):
    """Raised when package is not properly configured"""
    pass


class SupabaseAPIError(RestaurantCMSException):
    """Raised when Supabase API call fails"""

    def __init__(self, message, status_code=None, code=None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code

    @property
    def is_policy_violation(self) -> bool:
        """True when the store rejected the call on a permission / RLS policy"""
        return self.status_code in (401, 403) or self.code == '42501'

    @property
    def is_unique_violation(self) -> bool:
        return self.code == '23505'


class SubmissionValidationError(RestaurantCMSException):
    """Raised when a visitor submission fails local validation"""

    def __init__(self, message, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])


class FallbackStoreError(RestaurantCMSException):
    """Raised when the local fallback store cannot be read or written"""
    pass
