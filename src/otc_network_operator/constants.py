"""Constants for the OTC Network Operator."""

# API Group and Version
API_GROUP = "otc.cloud37.dev"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_PROVIDER_CONFIG = "ProviderConfig"
KIND_CLUSTER_PROVIDER_CONFIG = "ClusterProviderConfig"
KIND_VPC = "VPC"
KIND_SUBNET = "Subnet"
KIND_SECURITY_GROUP = "SecurityGroup"
KIND_SECURITY_GROUP_RULE = "SecurityGroupRule"
KIND_NAT_GATEWAY = "NATGateway"
KIND_ELASTIC_IP = "ElasticIP"
KIND_SNAT_RULE = "SNATRule"

# Plural names used by the custom objects API
PLURALS = {
    KIND_PROVIDER_CONFIG: "providerconfigs",
    KIND_CLUSTER_PROVIDER_CONFIG: "clusterproviderconfigs",
    KIND_VPC: "vpcs",
    KIND_SUBNET: "subnets",
    KIND_SECURITY_GROUP: "securitygroups",
    KIND_SECURITY_GROUP_RULE: "securitygrouprules",
    KIND_NAT_GATEWAY: "natgateways",
    KIND_ELASTIC_IP: "elasticips",
    KIND_SNAT_RULE: "snatrules",
}

# Annotations
ANNOTATION_EXTERNAL_NAME = f"{API_GROUP}/external-name"

# Finalizer
FINALIZER = f"{API_GROUP}/finalizer"

# Controller name
CONTROLLER_NAME = "otc-network-operator"

# Provider configuration
DEFAULT_PROVIDER_CONFIG_NAME = "default"
DEFAULT_IDENTITY_ENDPOINT = "https://iam.eu-de.otc.t-systems.com/v3"
CREDENTIALS_SOURCE_SECRET = "Secret"
CREDENTIALS_KEY_ACCESS = "accessKey"
CREDENTIALS_KEY_SECRET = "secretKey"

# Condition Types
COND_READY = "Ready"
COND_SYNCED = "Synced"

# Condition Reasons
REASON_RECONCILE_SUCCESS = "ReconcileSuccess"
REASON_RECONCILE_ERROR = "ReconcileError"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_CREATED = "CreatedExternalResource"
EVENT_REASON_UPDATED = "UpdatedExternalResource"
EVENT_REASON_DELETED = "DeletedExternalResource"
EVENT_REASON_CANNOT_OBSERVE = "CannotObserveExternalResource"
EVENT_REASON_CANNOT_CREATE = "CannotCreateExternalResource"
EVENT_REASON_CANNOT_UPDATE = "CannotUpdateExternalResource"
EVENT_REASON_CANNOT_DELETE = "CannotDeleteExternalResource"
EVENT_REASON_CANNOT_RESOLVE_REFERENCES = "CannotResolveResourceReferences"
EVENT_REASON_CANNOT_CONNECT = "CannotConnectToProvider"
EVENT_REASON_LATE_INITIALIZED = "LateInitializedParameters"
