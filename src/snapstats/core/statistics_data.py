"""Known statistics as (name, unit, kind) rows.

Names missing here are still displayed, with a "?" suffix, and logged at INFO
level so they can be added.
"""

VALUE_STATISTICS: tuple[tuple[str, str, str], ...] = (
    # server
    ("cpu_stime", "milliseconds", "counter"),
    ("cpu_utime", "milliseconds", "counter"),
    ("context_switches_involuntary", "operations", "counter"),
    ("context_switches_voluntary", "operations", "counter"),
    ("generic_current_allocated_bytes", "bytes", "gauge"),
    ("generic_heap_size", "bytes", "gauge"),
    ("hybrid_clock_error", "microseconds", "gauge"),
    ("hybrid_clock_hybrid_time", "microseconds", "gauge"),
    ("mem_tracker", "bytes", "gauge"),
    ("mem_tracker_Call", "bytes", "gauge"),
    ("mem_tracker_Compressed_Read_Buffer_Receive", "bytes", "gauge"),
    ("mem_tracker_Read_Buffer", "bytes", "gauge"),
    ("mem_tracker_Tablets", "bytes", "gauge"),
    ("mem_tracker_log_cache", "bytes", "gauge"),
    ("rpc_connections_alive", "connections", "gauge"),
    ("rpc_inbound_calls_created", "requests", "counter"),
    ("rpc_inbound_calls_alive", "requests", "gauge"),
    ("rpc_outbound_calls_created", "requests", "counter"),
    ("rpc_outbound_calls_alive", "requests", "gauge"),
    ("rpcs_in_queue_yb_tserver_TabletServerService", "requests", "gauge"),
    ("rpcs_queue_overflow", "requests", "counter"),
    ("rpcs_timed_out_in_queue", "requests", "counter"),
    ("tcmalloc_current_total_thread_cache_bytes", "bytes", "gauge"),
    ("tcmalloc_pageheap_free_bytes", "bytes", "gauge"),
    ("tcmalloc_pageheap_unmapped_bytes", "bytes", "gauge"),
    ("threads_running", "threads", "gauge"),
    ("threads_started", "threads", "counter"),
    ("ts_split_compaction_added", "tasks", "counter"),
    ("ts_live_tablet_peers", "tablets", "gauge"),
    ("ts_data_size", "bytes", "gauge"),
    ("ts_supportable_tablet_peers", "tablets", "gauge"),
    ("yb_cqlserver_ConnectionsAlive", "connections", "gauge"),
    ("yb_ysqlserver_active_connection_total", "connections", "gauge"),
    ("yb_ysqlserver_connection_total", "connections", "gauge"),
    ("yb_ysqlserver_connection_over_limit_total", "connections", "counter"),
    ("yb_ysqlserver_new_connection_total", "connections", "counter"),
    # cluster (master)
    ("is_load_balancing_enabled", "?", "gauge"),
    ("num_tablet_servers_dead", "?", "gauge"),
    ("num_tablet_servers_live", "?", "gauge"),
    ("create_table_too_many_tablets", "requests", "counter"),
    # table and tablet
    ("all_operations_inflight", "operations", "gauge"),
    ("follower_lag_ms", "milliseconds", "gauge"),
    ("in_progress_ops", "operations", "gauge"),
    ("is_raft_leader", "?", "gauge"),
    ("leader_memory_pressure_rejections", "requests", "counter"),
    ("log_bytes_logged", "bytes", "counter"),
    ("log_cache_num_ops", "operations", "gauge"),
    ("log_cache_size", "bytes", "gauge"),
    ("log_reader_bytes_read", "bytes", "counter"),
    ("log_wal_size", "bytes", "gauge"),
    ("majority_sst_files_rejections", "requests", "counter"),
    ("not_leader_rejections", "requests", "counter"),
    ("operation_memory_pressure_rejections", "requests", "counter"),
    ("raft_term", "?", "gauge"),
    ("restart_read_requests", "requests", "counter"),
    ("rows_inserted", "rows", "counter"),
    ("rocksdb_block_cache_add", "blocks", "counter"),
    ("rocksdb_block_cache_bytes_read", "bytes", "counter"),
    ("rocksdb_block_cache_bytes_write", "bytes", "counter"),
    ("rocksdb_block_cache_data_hit", "blocks", "counter"),
    ("rocksdb_block_cache_data_miss", "blocks", "counter"),
    ("rocksdb_block_cache_hit", "blocks", "counter"),
    ("rocksdb_block_cache_index_hit", "blocks", "counter"),
    ("rocksdb_block_cache_index_miss", "blocks", "counter"),
    ("rocksdb_block_cache_miss", "blocks", "counter"),
    ("rocksdb_bloom_filter_checked", "blocks", "counter"),
    ("rocksdb_bloom_filter_useful", "blocks", "counter"),
    ("rocksdb_bytes_read", "bytes", "counter"),
    ("rocksdb_bytes_written", "bytes", "counter"),
    ("rocksdb_compact_read_bytes", "bytes", "counter"),
    ("rocksdb_compact_write_bytes", "bytes", "counter"),
    ("rocksdb_current_version_num_sst_files", "files", "gauge"),
    ("rocksdb_current_version_sst_files_size", "bytes", "gauge"),
    ("rocksdb_current_version_sst_files_uncompressed_size", "bytes", "gauge"),
    ("rocksdb_db_iter_bytes_read", "bytes", "counter"),
    ("rocksdb_flush_write_bytes", "bytes", "counter"),
    ("rocksdb_memtable_hit", "keys", "counter"),
    ("rocksdb_memtable_miss", "keys", "counter"),
    ("rocksdb_no_table_cache_iterators", "?", "counter"),
    ("rocksdb_number_db_next", "keys", "counter"),
    ("rocksdb_number_db_next_found", "keys", "counter"),
    ("rocksdb_number_db_prev", "keys", "counter"),
    ("rocksdb_number_db_seek", "keys", "counter"),
    ("rocksdb_number_db_seek_found", "keys", "counter"),
    ("rocksdb_number_keys_read", "keys", "counter"),
    ("rocksdb_number_keys_written", "keys", "counter"),
    ("rocksdb_number_superversion_acquires", "?", "counter"),
    ("rocksdb_number_superversion_releases", "?", "counter"),
    ("rocksdb_sequence_number", "?", "gauge"),
    ("rocksdb_total_sst_files_size", "bytes", "gauge"),
    ("rocksdb_wal_bytes", "bytes", "counter"),
    ("rocksdb_write_self", "operations", "counter"),
    ("docdb_keys_found", "keys", "counter"),
    ("docdb_obsolete_keys_found", "keys", "counter"),
    ("docdb_obsolete_keys_found_past_cutoff", "keys", "counter"),
    ("intentsdb_rocksdb_block_cache_hit", "blocks", "counter"),
    ("intentsdb_rocksdb_block_cache_miss", "blocks", "counter"),
    ("intentsdb_rocksdb_bytes_written", "bytes", "counter"),
    ("intentsdb_rocksdb_number_keys_written", "keys", "counter"),
    ("transaction_not_found", "transactions", "counter"),
    ("expired_transactions", "transactions", "counter"),
    ("aborted_transactions_pending_cleanup", "transactions", "gauge"),
    ("wal_replayable_applied_transactions", "transactions", "gauge"),
    # cdc
    ("async_replication_committed_lag_micros", "microseconds", "gauge"),
    ("async_replication_sent_lag_micros", "microseconds", "gauge"),
    ("last_read_opid_index", "?", "gauge"),
    ("last_readable_opid_index", "?", "gauge"),
    ("rpc_payload_bytes_responded", "bytes", "counter"),
    ("rpc_heartbeats_responded", "requests", "counter"),
    ("cdcsdk_change_event_count", "entries", "counter"),
    ("cdcsdk_traffic_sent", "bytes", "counter"),
)

COUNTSUM_STATISTICS: tuple[tuple[str, str, str], ...] = (
    ("admin_triggered_compaction_pool_queue_time_us", "microseconds", "counter"),
    ("admin_triggered_compaction_pool_run_time_us", "microseconds", "counter"),
    ("deadlock_probe_latency", "milliseconds", "counter"),
    ("deadlock_size", "transactions", "counter"),
    ("dns_resolve_latency_during_init_proxy", "microseconds", "counter"),
    ("full_compaction_pool_queue_time_us", "microseconds", "counter"),
    ("full_compaction_pool_run_time_us", "microseconds", "counter"),
    ("handler_latency_outbound_call_queue_time", "microseconds", "counter"),
    ("handler_latency_outbound_call_send_time", "microseconds", "counter"),
    ("handler_latency_outbound_call_time_to_response", "microseconds", "counter"),
    ("handler_latency_outbound_transfer", "microseconds", "counter"),
    ("handler_latency_yb_client_read_local", "microseconds", "counter"),
    ("handler_latency_yb_client_read_remote", "microseconds", "counter"),
    ("handler_latency_yb_client_time_to_send", "microseconds", "counter"),
    ("handler_latency_yb_client_write_local", "microseconds", "counter"),
    ("handler_latency_yb_client_write_remote", "microseconds", "counter"),
    ("handler_latency_yb_consensus_ConsensusService_ChangeConfig", "microseconds", "counter"),
    ("handler_latency_yb_consensus_ConsensusService_GetLastOpId", "microseconds", "counter"),
    ("handler_latency_yb_consensus_ConsensusService_MultiRaftUpdateConsensus", "microseconds", "counter"),
    ("handler_latency_yb_consensus_ConsensusService_RequestConsensusVote", "microseconds", "counter"),
    ("handler_latency_yb_consensus_ConsensusService_RunLeaderElection", "microseconds", "counter"),
    ("handler_latency_yb_consensus_ConsensusService_UpdateConsensus", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_CQLServerService_Any", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_CQLServerService_ExecuteRequest", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_CQLServerService_ParseRequest", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_CQLServerService_ProcessRequest", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_CQLServerService_QueueResponse", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_DeleteStmt", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_InsertStmt", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_NumRetriesToExecute", "operations", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_OtherStmts", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_ResponseSize", "bytes", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_SelectStmt", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_Transaction", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_UpdateStmt", "microseconds", "counter"),
    ("handler_latency_yb_cqlserver_SQLProcessor_UseStmt", "microseconds", "counter"),
    ("handler_latency_yb_master_MasterClient_GetTableLocations", "microseconds", "counter"),
    ("handler_latency_yb_master_MasterClient_GetTabletLocations", "microseconds", "counter"),
    ("handler_latency_yb_master_MasterCluster_ListTabletServers", "microseconds", "counter"),
    ("handler_latency_yb_master_MasterDdl_CreateTable", "microseconds", "counter"),
    ("handler_latency_yb_master_MasterDdl_DeleteTable", "microseconds", "counter"),
    ("handler_latency_yb_master_MasterHeartbeat_TSHeartbeat", "microseconds", "counter"),
    ("handler_latency_yb_server_GenericService_GetStatus", "microseconds", "counter"),
    ("handler_latency_yb_server_GenericService_Ping", "microseconds", "counter"),
    ("handler_latency_yb_tserver_PgClientService_Heartbeat", "microseconds", "counter"),
    ("handler_latency_yb_tserver_PgClientService_OpenTable", "microseconds", "counter"),
    ("handler_latency_yb_tserver_PgClientService_Perform", "microseconds", "counter"),
    ("handler_latency_yb_tserver_TabletServerService_Read", "microseconds", "counter"),
    ("handler_latency_yb_tserver_TabletServerService_Write", "microseconds", "counter"),
    ("handler_latency_yb_tserver_TabletServerService_UpdateTransaction", "microseconds", "counter"),
    ("handler_latency_yb_tserver_TabletServerService_GetTransactionStatus", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_InsertStmt", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_SelectStmt", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_UpdateStmt", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_DeleteStmt", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_BeginStmt", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_CommitStmt", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_RollbackStmt", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_OtherStmts", "microseconds", "counter"),
    ("handler_latency_yb_ysqlserver_SQLProcessor_Transactions", "microseconds", "counter"),
    ("log_append_latency", "microseconds", "counter"),
    ("log_entry_batches_per_group", "requests", "counter"),
    ("log_gc_duration", "microseconds", "counter"),
    ("log_group_commit_latency", "microseconds", "counter"),
    ("log_roll_latency", "microseconds", "counter"),
    ("log_sync_latency", "microseconds", "counter"),
    ("op_apply_queue_length", "tasks", "counter"),
    ("op_apply_queue_time", "microseconds", "counter"),
    ("op_apply_run_time", "microseconds", "counter"),
    ("op_read_queue_length", "tasks", "counter"),
    ("op_read_queue_time", "microseconds", "counter"),
    ("op_read_run_time", "microseconds", "counter"),
    ("ql_read_latency", "microseconds", "counter"),
    ("read_time_wait", "microseconds", "counter"),
    ("rocksdb_bytes_per_multiget", "bytes", "counter"),
    ("rocksdb_bytes_per_read", "bytes", "counter"),
    ("rocksdb_bytes_per_write", "bytes", "counter"),
    ("rocksdb_compaction_times_micros", "microseconds", "counter"),
    ("rocksdb_db_get_micros", "microseconds", "counter"),
    ("rocksdb_db_multiget_micros", "microseconds", "counter"),
    ("rocksdb_db_seek_micros", "microseconds", "counter"),
    ("rocksdb_db_write_micros", "microseconds", "counter"),
    ("rocksdb_numfiles_in_singlecompaction", "files", "counter"),
    ("rocksdb_read_block_compaction_micros", "microseconds", "counter"),
    ("rocksdb_read_block_get_micros", "microseconds", "counter"),
    ("rocksdb_sst_read_micros", "microseconds", "counter"),
    ("rocksdb_wal_file_sync_micros", "microseconds", "counter"),
    ("rocksdb_write_raw_block_micros", "microseconds", "counter"),
    ("rpc_incoming_queue_time", "microseconds", "counter"),
    ("snapshot_read_inflight_wait_duration", "microseconds", "counter"),
    ("transaction_pool_cache", "microseconds", "counter"),
    ("write_lock_latency", "microseconds", "counter"),
    ("write_op_duration_client_propagated_consistency", "microseconds", "counter"),
    ("ycql_queries_system_peers", "microseconds", "counter"),
    ("ycql_queries_system_schema_keyspaces", "microseconds", "counter"),
    ("ycql_queries_system_schema_tables", "microseconds", "counter"),
)
