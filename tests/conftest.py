from hypothesis import HealthCheck, settings

# Input generation can be slow on a cold interpreter; don't fail on timing alone.
settings.register_profile("default", suppress_health_check=[HealthCheck.too_slow])
settings.load_profile("default")
