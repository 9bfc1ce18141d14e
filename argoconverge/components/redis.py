from typing import Dict
from kubernetes_asyncio.client import V1ServicePort, V1ServiceSpec
from argoconverge.components.base import BaseComponent
from argoconverge.core import Outcome, ResourceRequest
from argoconverge.mutations import with_resource_hash
from argoconverge.resources import ConfigMapResource, ServiceResource

HA_CONFIG_MAP_NAME = "argocd-redis-ha-configmap"
HA_HEALTH_CONFIG_MAP_NAME = "argocd-redis-ha-health-configmap"

HAPROXY_CFG_KEY = "haproxy.cfg"
HAPROXY_SCRIPT_KEY = "haproxy_init.sh"
INIT_SCRIPT_KEY = "init.sh"
REDIS_CONF_KEY = "redis.conf"
SENTINEL_CONF_KEY = "sentinel.conf"
LIVENESS_SCRIPT_KEY = "redis_liveness.sh"
READINESS_SCRIPT_KEY = "redis_readiness.sh"
SENTINEL_LIVENESS_SCRIPT_KEY = "sentinel_liveness.sh"

SENTINEL_PORT = 26379
HA_REPLICAS = 3
MASTER_GROUP = "argocd"

REDIS_CONF = """dir "/data"
port {port}
bind 0.0.0.0
maxmemory 0
maxmemory-policy volatile-lru
min-replicas-max-lag 5
min-replicas-to-write 1
rdbchecksum yes
rdbcompression yes
repl-diskless-sync yes
save ""
"""

SENTINEL_CONF = """dir "/data"
port {sentinel_port}
bind 0.0.0.0
sentinel monitor {group} {host} {port} {quorum}
sentinel down-after-milliseconds {group} 10000
sentinel failover-timeout {group} 180000
sentinel parallel-syncs {group} 5
maxclients 10000
"""

# Only the master passes the role check, so haproxy always routes to it
HAPROXY_CFG = """defaults REDIS
  mode tcp
  timeout connect 4s
  timeout server 6m
  timeout client 6m
  timeout check 2s

listen health_check_http_url
  bind :8888
  mode http
  monitor-uri /healthz
  option dontlognull

frontend ft_redis
  bind :{port} name redis
  default_backend bk_redis

backend bk_redis
  option tcp-check
  tcp-check connect
  tcp-check send PING\\r\\n
  tcp-check expect string +PONG
  tcp-check send info\\ replication\\r\\n
  tcp-check expect string role:master
  tcp-check send QUIT\\r\\n
  tcp-check expect string +OK
{servers}
"""

HAPROXY_SERVER = "  server R{index} {name}-redis-ha-announce-{index}:{port} check inter 1s"

HAPROXY_INIT_SH = """HAPROXY_CONF=/data/haproxy.cfg
cp /readonly/haproxy.cfg "$HAPROXY_CONF"
for loop in $(seq 1 10); do
  getent hosts {service}.{namespace}.svc && break
  echo "Waiting for service {service} to be ready ($loop) ..." && sleep 1
done
for index in $(seq 0 {last_index}); do
  ANNOUNCE_IP=$(getent hosts "{name}-redis-ha-announce-$index" | awk '{{ print $1 }}')
  if [ -z "$ANNOUNCE_IP" ]; then
    echo "Could not resolve the announce ip for {name}-redis-ha-announce-$index"
    exit 1
  fi
  sed -i "s/{name}-redis-ha-announce-$index/$ANNOUNCE_IP/" "$HAPROXY_CONF"
done
"""

INIT_SH = """HOSTNAME="$(cat /proc/sys/kernel/hostname)"
INDEX="$(echo "$HOSTNAME" | awk -F'-' '{{ print $NF }}')"
MASTER_GROUP="{group}"
QUORUM="{quorum}"
REDIS_PORT={port}
SENTINEL_PORT={sentinel_port}
SERVICE={service}.{namespace}.svc
SENTINEL_CONF=/data/conf/sentinel.conf
REDIS_CONF=/data/conf/redis.conf

set -eu

mkdir -p /data/conf
cp /readonly-config/redis.conf "$REDIS_CONF"
cp /readonly-config/sentinel.conf "$SENTINEL_CONF"

ANNOUNCE_IP=$(getent hosts "{name}-redis-ha-announce-$INDEX" | awk '{{ print $1 }}')
if [ -z "$ANNOUNCE_IP" ]; then
  echo "Could not resolve the announce ip for this pod"
  exit 1
fi

MASTER="$(redis-cli -h "$SERVICE" -p "$SENTINEL_PORT" sentinel get-master-addr-by-name "$MASTER_GROUP" | head -n 1)"
if [ -z "$MASTER" ] || [ "$MASTER" = "$ANNOUNCE_IP" ]; then
  echo "Setting this pod as the default master..."
  sed -i "s/^.*slaveof.*//" "$REDIS_CONF"
  sed -i "s/^sentinel monitor .*/sentinel monitor $MASTER_GROUP $ANNOUNCE_IP $REDIS_PORT $QUORUM/" "$SENTINEL_CONF"
else
  echo "Found master $MASTER, setting up as replica"
  echo "slaveof $MASTER $REDIS_PORT" >> "$REDIS_CONF"
  sed -i "s/^sentinel monitor .*/sentinel monitor $MASTER_GROUP $MASTER $REDIS_PORT $QUORUM/" "$SENTINEL_CONF"
fi
echo "sentinel announce-ip $ANNOUNCE_IP" >> "$SENTINEL_CONF"
echo "sentinel announce-port $SENTINEL_PORT" >> "$SENTINEL_CONF"
echo "slave-announce-ip $ANNOUNCE_IP" >> "$REDIS_CONF"
echo "slave-announce-port $REDIS_PORT" >> "$REDIS_CONF"
"""

REDIS_LIVENESS_SH = """response=$(
  redis-cli \\
    -h localhost \\
    -p {port} \\
    ping
)
if [ "$response" != "PONG" ] && [ "$response" != "LOADING Redis is loading the dataset in memory" ]; then
  echo "$response"
  exit 1
fi
echo "response=$response"
"""

REDIS_READINESS_SH = """response=$(
  redis-cli \\
    -h localhost \\
    -p {port} \\
    ping
)
if [ "$response" != "PONG" ] ; then
  echo "$response"
  exit 1
fi
echo "response=$response"
"""

SENTINEL_LIVENESS_SH = """response=$(
  redis-cli \\
    -h localhost \\
    -p {sentinel_port} \\
    ping
)
if [ "$response" != "PONG" ]; then
  echo "$response"
  exit 1
fi
echo "response=$response"
"""


class RedisComponent(BaseComponent):
    """Redis cache of an ArgoCD instance.

    The HA config maps only exist while HA is enabled. Nothing is kept in the
    cluster when the instance points at a remote redis.
    """

    COMPONENT = "redis"

    @property
    def service_name(self) -> str:
        return self.request().resource_name()

    def service_request(self) -> ResourceRequest:
        port = self.conf.redis_port
        return self.request(
            payload=dict(
                spec=V1ServiceSpec(
                    type="ClusterIP",
                    selector=self.selector(),
                    ports=[
                        V1ServicePort(
                            name="tcp-redis",
                            port=port,
                            target_port=port,
                            protocol="TCP",
                        )
                    ],
                )
            )
        )

    def haproxy_config(self) -> str:
        port = self.conf.redis_port
        servers = "\n".join(
            HAPROXY_SERVER.format(index=index, name=self.name, port=port)
            for index in range(HA_REPLICAS)
        )
        return HAPROXY_CFG.format(port=port, servers=servers)

    def ha_config_map_request(self) -> ResourceRequest:
        port = self.conf.redis_port
        quorum = self.conf.redis_sentinel_quorum
        data = {
            HAPROXY_CFG_KEY: self.haproxy_config(),
            HAPROXY_SCRIPT_KEY: HAPROXY_INIT_SH.format(
                name=self.name,
                service=self.service_name,
                namespace=self.namespace,
                last_index=HA_REPLICAS - 1,
            ),
            INIT_SCRIPT_KEY: INIT_SH.format(
                name=self.name,
                service=self.service_name,
                namespace=self.namespace,
                group=MASTER_GROUP,
                quorum=quorum,
                port=port,
                sentinel_port=SENTINEL_PORT,
            ),
            REDIS_CONF_KEY: REDIS_CONF.format(port=port),
            SENTINEL_CONF_KEY: SENTINEL_CONF.format(
                sentinel_port=SENTINEL_PORT,
                group=MASTER_GROUP,
                host=f"{self.service_name}.{self.namespace}.svc",
                port=port,
                quorum=quorum,
            ),
        }
        return self.request(
            name=HA_CONFIG_MAP_NAME,
            payload=dict(data=data),
            mutations=[with_resource_hash("data")],
        )

    def ha_health_config_map_request(self) -> ResourceRequest:
        port = self.conf.redis_port
        data = {
            LIVENESS_SCRIPT_KEY: REDIS_LIVENESS_SH.format(port=port),
            READINESS_SCRIPT_KEY: REDIS_READINESS_SH.format(port=port),
            SENTINEL_LIVENESS_SCRIPT_KEY: SENTINEL_LIVENESS_SH.format(
                sentinel_port=SENTINEL_PORT
            ),
        }
        return self.request(
            name=HA_HEALTH_CONFIG_MAP_NAME,
            payload=dict(data=data),
            mutations=[with_resource_hash("data")],
        )

    async def synchronize(self) -> Dict[str, Outcome]:
        services = self.resource(ServiceResource)
        config_maps = self.resource(ConfigMapResource)
        ha_requests = [self.ha_config_map_request(), self.ha_health_config_map_request()]

        if self.spec.redis_remote:
            self.logger.info(
                f"Using remote redis `{self.spec.redis_remote}`, removing local redis resources"
            )
            await self.remove(services, self.service_request())
            for request in ha_requests:
                await self.remove(config_maps, request)
            return self.outcomes

        await self.converge(services, self.service_request())
        for request in ha_requests:
            if self.spec.ha_enabled:
                await self.converge(config_maps, request)
            else:
                await self.remove(config_maps, request)
        return self.outcomes
