SCHEMA_SQL = """
create table if not exists jobs (
  id text primary key,
  job_title text not null check (length(job_title) > 0),
  company_name text,
  location text,
  job_url text not null check (length(job_url) > 0),
  description text,
  salary text,
  job_type text check (job_type in ('fulltime', 'parttime', 'contract', 'internship')),
  is_remote boolean not null default false,
  notes text,
  source text not null default 'manual',
  status text not null default 'new'
    check (status in ('new', 'viewed', 'applied', 'rejected', 'shortlisted')),
  created_at timestamptz not null default now(),
  updated_at timestamptz not null default now()
);

create index if not exists jobs_status_idx on jobs (status);
create index if not exists jobs_job_url_idx on jobs (job_url);
create index if not exists jobs_created_at_idx on jobs (created_at desc);

create table if not exists job_attachments (
  id text primary key,
  job_id text not null references jobs (id) on delete cascade,
  file_name text not null,
  file_type text not null check (file_type in ('resume', 'cover_letter')),
  mime_type text,
  file_size bigint not null check (file_size >= 0),
  content bytea not null,
  created_at timestamptz not null default now()
);

create index if not exists job_attachments_job_id_idx on job_attachments (job_id);
"""
