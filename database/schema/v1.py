"""Schema v1 - Initial database schema.

This version includes tables for:
- Blocks and the transactions they contain
- Assets and their running supply
- Asset descriptions (the mint/burn audit trail behind each supply)
- Background jobs
"""

schema = {
    'version': 1,
    'tables': [
        {
            'name': 'blocks',
            'columns': [
                {'name': 'id', 'type': 'BIGSERIAL', 'primary_key': True},
                {'name': 'hash', 'type': 'TEXT', 'nullable': False},
                {'name': 'sequence', 'type': 'INT8', 'nullable': False},
                {'name': 'previous_block_hash', 'type': 'TEXT'},
                {'name': 'main', 'type': 'BOOLEAN', 'nullable': False},
                {'name': 'network_version', 'type': 'INT4', 'nullable': False},
                {'name': 'timestamp', 'type': 'TIMESTAMPTZ', 'nullable': False},
                {'name': 'graffiti', 'type': 'TEXT', 'nullable': False},
                {'name': 'difficulty', 'type': 'NUMERIC', 'nullable': False},
                {'name': 'work', 'type': 'NUMERIC'},
                {'name': 'size', 'type': 'INT8', 'nullable': False},
                {'name': 'transactions_count', 'type': 'INT4', 'nullable': False, 'default': '0'},
                {'name': 'time_since_last_block_ms', 'type': 'INT8'},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'uq_blocks_on_hash_and_network_version', 'columns': ['hash', 'network_version'], 'unique': True},
                {'name': 'idx_blocks_sequence', 'columns': ['sequence']},
                {'name': 'idx_blocks_main', 'columns': ['main', 'network_version']}
            ]
        },
        {
            'name': 'transactions',
            'columns': [
                {'name': 'id', 'type': 'BIGSERIAL', 'primary_key': True},
                {'name': 'hash', 'type': 'TEXT', 'nullable': False},
                {'name': 'network_version', 'type': 'INT4', 'nullable': False},
                {'name': 'fee', 'type': 'INT8', 'nullable': False},
                {'name': 'expiration', 'type': 'INT8'},
                {'name': 'size', 'type': 'INT8', 'nullable': False},
                {'name': 'notes', 'type': 'JSONB', 'nullable': False, 'default': "'[]'"},
                {'name': 'spends', 'type': 'JSONB', 'nullable': False, 'default': "'[]'"},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'uq_transactions_on_hash_and_network_version', 'columns': ['hash', 'network_version'], 'unique': True}
            ]
        },
        {
            'name': 'blocks_transactions',
            'columns': [
                {'name': 'block_id', 'type': 'INT8', 'nullable': False},
                {'name': 'transaction_id', 'type': 'INT8', 'nullable': False},
                {'name': 'index', 'type': 'INT4', 'nullable': False}
            ],
            'primary_key': ['block_id', 'transaction_id'],
            'foreign_keys': [
                {'columns': ['block_id'], 'references': 'blocks(id)'},
                {'columns': ['transaction_id'], 'references': 'transactions(id)'}
            ],
            'indexes': [
                {'name': 'idx_blocks_transactions_transaction', 'columns': ['transaction_id']}
            ]
        },
        {
            'name': 'assets',
            'columns': [
                {'name': 'id', 'type': 'BIGSERIAL', 'primary_key': True},
                {'name': 'identifier', 'type': 'TEXT', 'nullable': False, 'unique': True},
                {'name': 'name', 'type': 'TEXT', 'nullable': False},
                {'name': 'metadata', 'type': 'TEXT', 'nullable': False},
                {'name': 'owner', 'type': 'TEXT', 'nullable': False},
                {'name': 'supply', 'type': 'NUMERIC', 'nullable': False, 'default': '0'},
                {'name': 'created_transaction_id', 'type': 'INT8', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'foreign_keys': [
                {'columns': ['created_transaction_id'], 'references': 'transactions(id)'}
            ],
            'indexes': [
                {'name': 'idx_assets_name', 'columns': ['name']}
            ]
        },
        {
            'name': 'asset_descriptions',
            'columns': [
                {'name': 'id', 'type': 'BIGSERIAL', 'primary_key': True},
                {'name': 'type', 'type': 'TEXT', 'nullable': False},
                {'name': 'value', 'type': 'INT8', 'nullable': False},
                {'name': 'asset_id', 'type': 'INT8', 'nullable': False},
                {'name': 'transaction_id', 'type': 'INT8', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'foreign_keys': [
                {'columns': ['asset_id'], 'references': 'assets(id)'},
                {'columns': ['transaction_id'], 'references': 'transactions(id)'}
            ],
            'indexes': [
                {'name': 'idx_asset_descriptions_asset', 'columns': ['asset_id']},
                {'name': 'idx_asset_descriptions_transaction', 'columns': ['transaction_id']}
            ]
        },
        {
            'name': 'jobs',
            'columns': [
                {'name': 'id', 'type': 'BIGSERIAL', 'primary_key': True},
                {'name': 'pattern', 'type': 'TEXT', 'nullable': False},
                {'name': 'payload', 'type': 'JSONB', 'nullable': False},
                {'name': 'status', 'type': 'TEXT', 'nullable': False, 'default': "'pending'"},
                {'name': 'attempts', 'type': 'INT4', 'nullable': False, 'default': '0'},
                {'name': 'max_attempts', 'type': 'INT4', 'nullable': False, 'default': '5'},
                {'name': 'last_error', 'type': 'TEXT'},
                {'name': 'run_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'locked_at', 'type': 'TIMESTAMPTZ'},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_jobs_due', 'columns': ['status', 'run_at'], 'where': "status = 'pending'"}
            ]
        }
    ],
    'triggers': [
        {
            'name': f'trg_{table}_updated_at',
            'table': table,
            'timing': 'BEFORE',
            'event': 'UPDATE',
            'function_name': 'set_updated_at',
            'function_body': '''
                BEGIN
                    NEW.updated_at = now();
                    RETURN NEW;
                END;
            '''
        }
        for table in ('blocks', 'transactions', 'assets', 'jobs')
    ],
    'migrations': []
}
