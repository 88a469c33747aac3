from rest_framework.throttling import AnonRateThrottle


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


class PatientLookupRateThrottle(AnonRateThrottle):
    scope = 'patient_lookup'
