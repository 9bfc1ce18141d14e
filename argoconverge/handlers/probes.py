import datetime
import kopf


# Liveness probe
@kopf.on.probe(id="now")
def get_current_timestamp(**kwargs):
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@kopf.on.probe(id="routeAPI")
async def route_api_available(memo, **kwargs):
    features = getattr(memo, "features", None)
    if features is None:
        return None
    return await features.route_api_available()


@kopf.on.probe(id="versionAPI")
async def version_api_available(memo, **kwargs):
    features = getattr(memo, "features", None)
    if features is None:
        return None
    return await features.version_api_available()
