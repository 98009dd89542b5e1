# Infrastructure clients
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import VaultClient, apply_vault_secrets
